"""Prompt guard. Screens free-text requests before they reach the LLM.

This is a pattern blocklist, not a semantic classifier. Rules need fairly
specific phrasings so that ordinary requests ("ignore whitespace in strings")
pass. Jailbreak rules block; suspicious rules are only logged.
"""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache

import httpx

from catalyst.config import Settings, settings
from catalyst.models.security import (
    Feature,
    RateLimitPolicy,
    RuleCategory,
    SecurityEvent,
    SecurityEventType,
    SecurityVerdict,
    Severity,
    ValidationResult,
)

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("catalyst.security")

REFUSAL_REASON = "Potential prompt injection detected. Please rephrase your request."
TOO_SHORT_REASON = (
    "Request too short. Please provide more details about the changes you want "
    "(minimum {min_length} characters)."
)

_EVENT_PROMPT_CHARS = 200


@dataclass(frozen=True)
class GuardRule:
    id: str
    pattern: re.Pattern[str]
    category: RuleCategory
    severity: Severity = "high"


def _rule(rule_id: str, pattern: str, category: RuleCategory, severity: Severity = "high") -> GuardRule:
    return GuardRule(rule_id, re.compile(pattern, re.IGNORECASE), category, severity)


# Evaluated top to bottom; the first match is reported.
JAILBREAK_RULES: tuple[GuardRule, ...] = (
    _rule("ignore_previous_instructions", r"ignore (all )?previous (instructions|prompts|rules)", "instruction_override"),
    _rule("forget_previous_instructions", r"forget (all )?(previous|prior) (instructions|prompts|rules)", "instruction_override"),
    _rule("disregard_previous_instructions", r"disregard (all )?(previous|prior) (instructions|prompts|rules)", "instruction_override"),
    _rule("you_are_now", r"you are now", "role_manipulation"),
    # Engineering personas stay allowed, with or without an article.
    _rule("act_as", r"act as (?!(?:an? )?(?:software engineer|developer|programmer))", "role_manipulation"),
    _rule("pretend_to_be", r"pretend (you are|to be)", "role_manipulation"),
    _rule("simulate_being", r"simulate (being|a)", "role_manipulation"),
    _rule("show_system_prompt", r"show (me )?(your |the )?system prompt", "prompt_extraction"),
    _rule("ask_instructions", r"what (is|are) your (instructions|rules|guidelines)", "prompt_extraction"),
    _rule("repeat_instructions", r"repeat (your |the )?instructions", "prompt_extraction"),
    _rule("print_prompt", r"print (your |the )?(system )?prompt", "prompt_extraction"),
    _rule("fenced_system_block", r"```system", "delimiter_injection"),
    _rule("bracket_system_marker", r"\[SYSTEM\]", "delimiter_injection"),
    _rule("system_role_tag", r"<\|system\|>", "delimiter_injection"),
    _rule("hash_system_banner", r"###SYSTEM###", "delimiter_injection"),
    _rule("write_virus", r"write (a )?virus", "harmful_content"),
    _rule("create_malware", r"create (a )?malware", "harmful_content"),
    _rule("hack_into", r"hack (into|a)", "harmful_content"),
    _rule("exploit_vulnerability", r"exploit (a )?vulnerability", "harmful_content"),
    _rule("bypass_security", r"bypass security", "harmful_content"),
    _rule("send_data_to", r"send (this |the )?data to", "data_exfiltration"),
    _rule("post_data_to", r"post (this |the )?data to", "data_exfiltration"),
    _rule("upload_data_to", r"upload (this |the )?data to", "data_exfiltration"),
    _rule("base64", r"base64", "encoding_obfuscation"),
    _rule("rot13", r"rot13", "encoding_obfuscation"),
    _rule("hex_encode", r"hex encode", "encoding_obfuscation"),
    _rule("translate_then_ignore", r"translate.*ignore", "language_smuggling"),
    _rule("spanish_then_forget", r"in spanish.*forget", "language_smuggling"),
)

SUSPICIOUS_RULES: tuple[GuardRule, ...] = (
    _rule("delete_files", r"delete (all |every)?file", "destructive_operation", "medium"),
    _rule("remove_files", r"remove (all |every)?file", "destructive_operation", "medium"),
    _rule("drop_table", r"drop (all |every)?table", "destructive_operation", "medium"),
    _rule("truncate_table", r"truncate table", "destructive_operation", "medium"),
    _rule("rm_rf", r"rm -rf", "destructive_operation", "medium"),
    _rule("format_disk", r"format (c:|hard drive)", "destructive_operation", "medium"),
)

# Role markers rewritten to their user-role equivalent; content is kept.
_DELIMITER_REWRITES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"```system", re.IGNORECASE), "```text"),
    (re.compile(r"\[SYSTEM\]", re.IGNORECASE), "[USER]"),
    (re.compile(r"<\|system\|>", re.IGNORECASE), "<|user|>"),
    (re.compile(r"###SYSTEM###", re.IGNORECASE), "###USER###"),
)

_MIN_REPEAT_UNIT = 10

RATE_LIMITS: dict[str, RateLimitPolicy] = {
    "code_modification": RateLimitPolicy(
        per_hour=10,
        per_day=50,
        message="You've reached the hourly limit for code modifications. Please try again later.",
    ),
    "codebase_analysis": RateLimitPolicy(
        per_hour=20,
        per_day=100,
        message="You've reached the hourly limit for codebase analysis. Please try again later.",
    ),
    "code_generation": RateLimitPolicy(
        per_hour=15,
        per_day=75,
        message="You've reached the hourly limit for code generation. Please try again later.",
    ),
}


def evaluate_rules(text: str, rules: tuple[GuardRule, ...]) -> GuardRule | None:
    for rule in rules:
        if rule.pattern.search(text):
            return rule
    return None


@lru_cache(maxsize=8)
def _repetition_pattern(max_length: int) -> re.Pattern[str]:
    # A unit of 10+ chars repeated 6+ times in a row. Any run that fits in
    # the clip window has a unit of at most max_length // 6.
    longest = max(_MIN_REPEAT_UNIT, max_length // 6)
    return re.compile(rf"(.{{{_MIN_REPEAT_UNIT},{longest}}}?)\1{{5,}}")


def sanitize(text: str, max_length: int = 10000) -> str:
    """Neutralize role markers, collapse padding and clip to ``max_length``.

    Plain text (SQL included) passes through untouched. The scan cost grows
    with ``len(text) * max_length``, so callers bound input size first.
    """
    sanitized = text
    for pattern, replacement in _DELIMITER_REWRITES:
        sanitized = pattern.sub(replacement, sanitized)

    sanitized = _repetition_pattern(max_length).sub(r"\1\1\1", sanitized)

    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length]
    return sanitized


def detect_jailbreak(text: str) -> SecurityVerdict:
    rule = evaluate_rules(text, JAILBREAK_RULES)
    if rule is not None:
        return SecurityVerdict(
            is_jailbreak=True,
            severity="high",
            matched_pattern=rule.id,
            category=rule.category,
        )

    rule = evaluate_rules(text, SUSPICIOUS_RULES)
    if rule is not None:
        return SecurityVerdict(
            is_jailbreak=False,
            severity="medium",
            matched_pattern=rule.id,
            category=rule.category,
        )

    return SecurityVerdict()


def validate_code_modification_request(
    text: str,
    user_id: int | None = None,
    config: Settings = settings,
) -> ValidationResult:
    """Screen and sanitize a request. Refusals are returned, never raised."""
    return screen_text(text, user_id, config, min_length=config.min_request_length)


def screen_text(
    text: str,
    user_id: int | None = None,
    config: Settings = settings,
    min_length: int = 0,
) -> ValidationResult:
    """Jailbreak check plus sanitize for any free-text field bound for the LLM.

    Short fields such as project names pass ``min_length=0``.
    """
    verdict = detect_jailbreak(text)

    if verdict.is_jailbreak:
        return ValidationResult(is_valid=False, sanitized="", reason=REFUSAL_REASON, verdict=verdict)

    sanitized = sanitize(text, config.max_prompt_length)

    if len(sanitized.strip()) < min_length:
        return ValidationResult(
            is_valid=False,
            sanitized="",
            reason=TOO_SHORT_REASON.format(min_length=min_length),
            verdict=verdict,
        )

    if verdict.severity == "medium":
        log_security_event(
            user_id=user_id,
            event_type="suspicious_pattern",
            severity="medium",
            details=f"Suspicious pattern matched: {verdict.matched_pattern}",
            prompt=sanitized,
        )

    return ValidationResult(is_valid=True, sanitized=sanitized, verdict=verdict)


def log_security_event(
    user_id: int | None,
    event_type: SecurityEventType,
    severity: Severity,
    details: str,
    prompt: str | None = None,
) -> SecurityEvent:
    """Record a security event as one JSON line on the security logger."""
    event = SecurityEvent(
        user_id=user_id,
        event_type=event_type,
        severity="low" if severity == "none" else severity,
        details=details,
        prompt=prompt[:_EVENT_PROMPT_CHARS] if prompt is not None else None,
    )
    security_logger.warning("Security event: %s", event.model_dump_json(by_alias=True))
    return event


async def send_security_alert(event: SecurityEvent, config: Settings = settings) -> bool:
    """Forward a high-severity event to the alert webhook, when one is configured."""
    if event.severity != "high" or not config.security_alert_webhook_url:
        return False

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            resp = await client.post(
                config.security_alert_webhook_url,
                json=event.model_dump(mode="json", by_alias=True),
            )
            resp.raise_for_status()
    except httpx.HTTPError:
        logger.exception("Failed to deliver security alert for %s", event.event_type)
        return False

    return True


def is_feature_enabled(feature: Feature, config: Settings = settings) -> bool:
    """Kill switch check; ``DISABLE_<FEATURE>=true`` turns a feature off."""
    if getattr(config, f"disable_{feature}", False):
        logger.warning("Feature %s is disabled by kill switch", feature)
        return False
    return True
