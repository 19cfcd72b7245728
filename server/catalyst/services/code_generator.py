"""Project code generation: turns a description into a set of source files."""

import logging
from pathlib import PurePosixPath

from pydantic import ValidationError

from catalyst.models.chat import ChatMessage
from catalyst.models.job import CodeGenerationPayload, CodeGenerationResult
from catalyst.services.llm_service import LLMResponseError, LLMService
from catalyst.services.templates import get_template_by_id

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert full-stack developer. Generate production-ready code for web applications.

When generating code:
1. Create a complete, realistic project structure with multiple files
2. Include package.json, configuration files, and README.md
3. Use modern best practices and clean code principles
4. Add helpful comments explaining key sections
5. Ensure all files work together as a cohesive application

Return your response as a JSON object with this structure:
{
  "files": [
    {
      "path": "relative/path/to/file.ext",
      "content": "file content here",
      "language": "javascript|typescript|html|css|json|markdown"
    }
  ],
  "summary": "Brief description of what was generated",
  "nextSteps": ["Step 1", "Step 2", "Step 3"]
}"""

RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "files": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "path": {"type": "string"},
                    "content": {"type": "string"},
                    "language": {"type": "string"},
                },
                "required": ["path", "content", "language"],
            },
        },
        "summary": {"type": "string"},
        "nextSteps": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["files", "summary", "nextSteps"],
}

_LANGUAGE_BY_EXTENSION: dict[str, str] = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "html": "html",
    "css": "css",
    "scss": "scss",
    "json": "json",
    "md": "markdown",
    "yml": "yaml",
    "yaml": "yaml",
    "env": "shell",
    "sh": "shell",
    "py": "python",
    "go": "go",
    "rs": "rust",
}


def get_file_language(file_path: str) -> str:
    """Guess a language label from the file extension."""
    name = PurePosixPath(file_path).name
    ext = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    return _LANGUAGE_BY_EXTENSION.get(ext, "text")


def build_user_prompt(payload: CodeGenerationPayload) -> str:
    prompt = (
        f"Generate a complete {payload.project_name} application.\n\n"
        f"Description: {payload.description}"
    )

    template = get_template_by_id(payload.template_id) if payload.template_id else None
    if template:
        stack = "; ".join(
            f"{layer}: {', '.join(items)}" for layer, items in template.tech_stack.layers().items()
        )
        prompt += (
            "\n\nUse this template as a guide:\n"
            f"- Template: {template.name}\n"
            f"- Features: {', '.join(template.features)}\n"
            f"- Tech Stack: {stack}"
        )
    elif payload.template_id:
        logger.warning("Unknown template id %r, generating without a template", payload.template_id)

    prompt += """

Generate a realistic project structure with at least 8-12 files including:
- package.json with dependencies
- Configuration files (tsconfig.json, tailwind.config.js, etc.)
- Source code files organized in folders
- README.md with setup instructions
- At least one main component/page
- Styling files

Make it production-ready and fully functional."""
    return prompt


class CodeGenerator:
    """Generates a whole project from a description and optional template."""

    def __init__(self, llm: LLMService | None = None) -> None:
        self._llm = llm or LLMService()

    async def generate_project_code(self, payload: CodeGenerationPayload) -> CodeGenerationResult:
        messages = [
            *(m for m in payload.conversation_history if m.role != "system"),
            ChatMessage(role="user", content=build_user_prompt(payload)),
        ]

        logger.info(
            "Generating project %r (template=%s, history=%d)",
            payload.project_name, payload.template_id, len(payload.conversation_history),
        )
        data = await self._llm.generate_json(SYSTEM_PROMPT, messages, RESPONSE_SCHEMA)

        try:
            result = CodeGenerationResult.model_validate(data)
        except ValidationError as e:
            raise LLMResponseError("The AI service returned an unexpected project structure") from e

        for file in result.files:
            if not file.language or file.language == "text":
                file.language = get_file_language(file.path)

        logger.info("Generated %d files for %r", len(result.files), payload.project_name)
        return result
