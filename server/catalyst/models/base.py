from pydantic import BaseModel, ConfigDict

from catalyst.config import settings

# Upper bound for any free-text request field. The guard clips to
# max_prompt_length after scanning, so this caps the scan itself.
MAX_TEXT_CHARS = settings.max_prompt_length * 2
MAX_NAME_CHARS = 200
MAX_HISTORY_MESSAGES = 50


def _to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    components = string.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


class CamelModel(BaseModel):
    """Accepts both camelCase and snake_case input, dumps camelCase by alias."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=_to_camel)
