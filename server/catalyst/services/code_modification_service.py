"""AI-assisted changes to an existing repository.

A modification runs in three steps: ask the model which files to touch,
ask for the complete new content of each of those files, then assemble
branch and pull request metadata for the change set.
"""

import logging
import time

from pydantic import ValidationError

from catalyst.models.chat import ChatMessage
from catalyst.models.codebase import CodebaseAnalysis, CodebaseComplexity
from catalyst.models.job import CodeModificationPayload, CodeModificationResult, FileChange, FileContext
from catalyst.services.llm_service import LLMResponseError, LLMService

logger = logging.getLogger(__name__)

_JSON_ONLY = "You are an expert software engineer. Respond only with valid JSON."
_CODE_JSON_ONLY = (
    "You are an expert software engineer. Generate complete, production-ready code. "
    "Respond only with valid JSON."
)
_ARCHITECT_JSON_ONLY = "You are an expert software architect. Respond only with valid JSON."

ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "filesToModify": {"type": "array", "items": {"type": "string"}},
        "summary": {"type": "string"},
        "reasoning": {"type": "string"},
    },
    "required": ["filesToModify", "summary", "reasoning"],
}

MODIFICATION_SCHEMA = {
    "type": "object",
    "properties": {
        "modifiedContent": {"type": "string"},
        "explanation": {"type": "string"},
    },
    "required": ["modifiedContent", "explanation"],
}

CODEBASE_SCHEMA = {
    "type": "object",
    "properties": {
        "techStack": {"type": "array", "items": {"type": "string"}},
        "structure": {"type": "string"},
        "keyComponents": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                    "files": {"type": "array", "items": {"type": "string"}},
                },
                "required": ["name", "description", "files"],
            },
        },
        "summary": {"type": "string"},
        "recommendations": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["techStack", "structure", "keyComponents", "summary", "recommendations"],
}

PR_TITLE_MAX = 72
_STRUCTURE_SAMPLE_FILES = 30
_CONTENT_SAMPLE_FILES = 5
_CONTENT_SAMPLE_CHARS = 800


def generate_pr_body(description: str, changes: list[FileChange], summary: str) -> str:
    """Markdown pull request body listing every changed file."""
    modified = "\n".join(f"- **{c.path}**: {c.explanation}" for c in changes)
    return f"""## AI-Generated Changes

### Description
{description}

### Summary
{summary}

### Modified Files
{modified}

### Review Notes
- All changes were generated by AI based on the provided description
- Please review carefully before merging
- Test thoroughly in your development environment

---
*Generated by Project Catalyst AI*"""


def classify_complexity(total_files: int, total_lines: int) -> CodebaseComplexity:
    if total_files > 50 or total_lines > 10000:
        return "complex"
    if total_files > 20 or total_lines > 3000:
        return "moderate"
    return "simple"


def count_lines(files: list[FileContext]) -> int:
    return sum(len(f.content.split("\n")) for f in files)


class CodeModificationService:
    """Plans and writes code changes for a repository snapshot."""

    def __init__(self, llm: LLMService | None = None) -> None:
        self._llm = llm or LLMService()

    async def analyze_and_modify_code(self, payload: CodeModificationPayload) -> CodeModificationResult:
        files_by_path = {f.path: f for f in payload.files}

        # Step 1: decide which files change
        listing = "\n".join(f"- {f.path} ({f.language or 'unknown'})" for f in payload.files)
        analysis_prompt = f"""You are an expert software engineer analyzing a codebase to implement a requested change.

Repository: {payload.repo_name}
Change Request: {payload.description}

Available Files:
{listing}

Analyze the request and determine:
1. Which files need to be modified
2. What changes are needed in each file
3. A brief summary of the modifications

Respond in JSON format:
{{
  "filesToModify": ["path1", "path2"],
  "summary": "Brief description of changes",
  "reasoning": "Why these files need to be changed"
}}"""

        analysis = await self._llm.generate_json(
            _JSON_ONLY, [ChatMessage(role="user", content=analysis_prompt)], ANALYSIS_SCHEMA,
        )
        files_to_modify = [p for p in analysis.get("filesToModify") or [] if isinstance(p, str)]
        summary = str(analysis.get("summary") or "")
        logger.info(
            "Modification plan for %s: %d of %d files",
            payload.repo_name, len(files_to_modify), len(payload.files),
        )

        # Step 2: rewrite each file the plan names
        changes: list[FileChange] = []
        for path in files_to_modify:
            source = files_by_path.get(path)
            if source is None:
                logger.warning("Model proposed unknown file %s, skipping", path)
                continue
            changes.append(await self._modify_file(source, payload.description))

        # Step 3: PR metadata
        return CodeModificationResult(
            files_to_modify=files_to_modify,
            changes=changes,
            summary=summary,
            branch_name=f"feature/ai-{int(time.time() * 1000)}",
            pr_title=payload.description[:PR_TITLE_MAX],
            pr_body=generate_pr_body(payload.description, changes, summary),
        )

    async def _modify_file(self, source: FileContext, description: str) -> FileChange:
        language = source.language or "unknown"
        prompt = f"""You are an expert software engineer modifying existing code.

File: {source.path}
Language: {language}
Change Request: {description}

Current File Content:
```{source.language or ""}
{source.content}
```

Generate the COMPLETE modified file content that implements the requested change. Include all existing code with your modifications integrated properly.

Respond in JSON format:
{{
  "modifiedContent": "complete file content with modifications",
  "explanation": "brief explanation of what was changed"
}}"""

        data = await self._llm.generate_json(
            _CODE_JSON_ONLY, [ChatMessage(role="user", content=prompt)], MODIFICATION_SCHEMA,
        )
        content = data.get("modifiedContent")
        if not isinstance(content, str):
            raise LLMResponseError(f"The AI service returned no content for {source.path}")

        return FileChange(
            path=source.path,
            content=content,
            explanation=str(data.get("explanation") or ""),
        )

    async def analyze_codebase(self, files: list[FileContext]) -> CodebaseAnalysis:
        """Summarize a repository. Totals and complexity are computed locally."""
        total_files = len(files)
        total_lines = count_lines(files)
        complexity = classify_complexity(total_files, total_lines)

        if not files:
            return CodebaseAnalysis(
                summary="The repository is empty.",
                complexity=complexity,
                total_files=0,
                total_lines=0,
            )

        structure = "\n".join(
            f"{f.path} ({len(f.content)} bytes, {f.language or 'unknown'})"
            for f in files[:_STRUCTURE_SAMPLE_FILES]
        )
        samples = "\n".join(
            f"\n--- {f.path} ---\n{f.content[:_CONTENT_SAMPLE_CHARS]}..."
            for f in files[:_CONTENT_SAMPLE_FILES]
        )
        prompt = f"""Analyze this codebase and provide comprehensive insights.

Repository Statistics:
- Total Files: {total_files}
- Total Lines: {total_lines}

File Structure:
{structure}

Sample File Contents:
{samples}

Provide a comprehensive analysis:
1. Tech stack (frameworks, libraries, languages)
2. Project structure and architecture
3. Key components/features (name, description, related files)
4. High-level summary (2-3 sentences)
5. Recommendations for improvements

Respond in JSON format:
{{
  "techStack": ["React", "TypeScript", "Node.js"],
  "structure": "description of architecture",
  "keyComponents": [
    {{
      "name": "Authentication System",
      "description": "Handles user login and session management",
      "files": ["src/auth/login.ts", "src/auth/session.ts"]
    }}
  ],
  "summary": "High-level overview of the project",
  "recommendations": ["recommendation1", "recommendation2"]
}}"""

        data = await self._llm.generate_json(
            _ARCHITECT_JSON_ONLY, [ChatMessage(role="user", content=prompt)], CODEBASE_SCHEMA,
        )
        try:
            return CodebaseAnalysis.model_validate({
                **data,
                "complexity": complexity,
                "totalFiles": total_files,
                "totalLines": total_lines,
            })
        except ValidationError as e:
            raise LLMResponseError("The AI service returned an unexpected codebase analysis") from e
