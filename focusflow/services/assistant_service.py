"""AI task assistant: provider-agnostic LLM integration.

Classifies tasks, groups related tasks and breaks large tasks into steps
using pluggable LLM providers (OpenAI, Anthropic). Every operation falls
back to a rule-based answer when no provider is configured, the provider
call fails, or the per-user daily AI limit is exhausted.
"""

import json
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import date

logger = logging.getLogger(__name__)

VALID_CATEGORIES = {"academic", "personal", "work", "health"}
VALID_PRIORITIES = {"urgent", "medium", "low"}


# ---------------------------------------------------------------------------
# LLM Provider Abstraction
# ---------------------------------------------------------------------------


class LLMProvider(ABC):
    """Abstract base for LLM providers."""

    @abstractmethod
    async def generate(self, system_prompt: str, user_prompt: str, max_tokens: int = 500) -> str:
        """Generate a JSON object response from the LLM."""
        ...


class OpenAIProvider(LLMProvider):
    """OpenAI-compatible provider (GPT-4o-mini default)."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini"):
        self.api_key = api_key
        self.model = model

    async def generate(self, system_prompt: str, user_prompt: str, max_tokens: int = 500) -> str:
        from openai import AsyncOpenAI

        client = AsyncOpenAI(api_key=self.api_key)
        response = await client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            response_format={"type": "json_object"},
            max_tokens=max_tokens,
            temperature=0.3,
        )
        return response.choices[0].message.content or ""


class AnthropicProvider(LLMProvider):
    """Anthropic-compatible provider (Claude Sonnet default)."""

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-5"):
        self.api_key = api_key
        self.model = model

    async def generate(self, system_prompt: str, user_prompt: str, max_tokens: int = 500) -> str:
        from anthropic import AsyncAnthropic

        client = AsyncAnthropic(api_key=self.api_key)
        response = await client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            system=system_prompt + "\nRespond with a single JSON object and nothing else.",
            messages=[{"role": "user", "content": user_prompt}],
        )
        return response.content[0].text


def create_provider(settings) -> LLMProvider | None:
    """Factory: create the configured LLM provider, or None if unconfigured."""
    if settings.AI_PROVIDER == "openai" and settings.OPENAI_API_KEY:
        return OpenAIProvider(
            settings.OPENAI_API_KEY,
            settings.AI_MODEL or "gpt-4o-mini",
        )
    elif settings.AI_PROVIDER == "anthropic" and settings.ANTHROPIC_API_KEY:
        return AnthropicProvider(
            settings.ANTHROPIC_API_KEY,
            settings.AI_MODEL or "claude-sonnet-4-5",
        )
    return None


# ---------------------------------------------------------------------------
# Prompt Templates
# ---------------------------------------------------------------------------

ASSISTANT_SYSTEM_PROMPT = (
    "You are a study coach for students with ADHD. You give clear, "
    "actionable, realistic advice and always answer in JSON."
)

ANALYZE_PROMPT = """Analyze this task for someone with ADHD who needs clear, actionable steps:

Task: "{title}"
Description: "{description}"

Provide analysis in JSON format with:
- category: academic, personal, work, or health
- priority: low, medium, or urgent (based on typical student needs)
- estimatedDuration: time in minutes to complete
- subtasks: array of 2-4 smaller, specific steps if the task is complex
- reasoning: brief explanation of categorization and priority

Focus on ADHD-friendly approaches: clear steps, realistic time estimates, and manageable chunks."""

GROUP_PROMPT = """Group these tasks for optimal ADHD productivity. Focus on:
- Similar contexts or locations
- Complementary energy levels
- Natural workflow sequences

Tasks:
{task_list}

Provide 2-3 grouping suggestions in JSON format:
{{"groups": [{{"groupName": "descriptive name", "tasks": ["task titles"], "reasoning": "why these work well together", "estimatedTotalTime": minutes}}]}}

Consider ADHD challenges: context switching difficulty, energy management, and hyperfocus opportunities."""

BREAKDOWN_PROMPT = """Break down this potentially overwhelming task into 3-6 smaller, specific, actionable steps for someone with ADHD:

Task: "{title}"
Description: "{description}"

Steps must be clear and actionable, 15-45 minutes each, in logical order, and specific enough to start immediately.

Format: {{"steps": ["step 1", "step 2", ...]}}"""


# ---------------------------------------------------------------------------
# Rate Limiting
# ---------------------------------------------------------------------------


async def _check_rate_limit(
    redis_client, user_id: uuid.UUID, limit: int = 20
) -> bool:
    """Check and increment daily rate limit. Returns True if within limit."""
    key = f"ai_rate:{user_id}:{date.today().isoformat()}"
    count = await redis_client.incr(key)
    if count == 1:
        await redis_client.expire(key, 86400)
    return count <= limit


async def _within_limit(redis_client, user_id: uuid.UUID, limit: int) -> bool:
    if redis_client is None:
        return True
    try:
        return await _check_rate_limit(redis_client, user_id, limit)
    except Exception:
        logger.warning("AI rate limit check failed, allowing request", exc_info=True)
        return True


# ---------------------------------------------------------------------------
# Parsing Helpers
# ---------------------------------------------------------------------------


def _parse_json_object(raw: str) -> dict:
    """Extract a JSON object from LLM response text."""
    stripped = raw.strip()
    try:
        parsed = json.loads(stripped)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    # Try extracting the object from surrounding text / markdown code blocks
    start = stripped.find("{")
    end = stripped.rfind("}")
    if start != -1 and end > start:
        parsed = json.loads(stripped[start : end + 1])
        if isinstance(parsed, dict):
            return parsed

    raise ValueError("No JSON object in LLM response")


def _positive_int(value, default: int) -> int:
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def _normalize_analysis(result: dict) -> dict:
    category = str(result.get("category", "personal")).lower()
    priority = str(result.get("priority", "medium")).lower()
    subtasks = result.get("subtasks") or []
    return {
        "category": category if category in VALID_CATEGORIES else "personal",
        "priority": priority if priority in VALID_PRIORITIES else "medium",
        "estimated_minutes": _positive_int(result.get("estimatedDuration"), 30),
        "subtasks": [str(s).strip() for s in subtasks if str(s).strip()][:4],
        "reasoning": str(result.get("reasoning") or "AI analysis completed"),
    }


def _normalize_groups(result: dict) -> list[dict]:
    groups = []
    for g in result.get("groups") or []:
        if not isinstance(g, dict) or not g.get("groupName"):
            continue
        groups.append({
            "group_name": str(g["groupName"]).strip(),
            "tasks": [str(t) for t in g.get("tasks") or []],
            "reasoning": str(g.get("reasoning") or ""),
            "estimated_total_minutes": _positive_int(g.get("estimatedTotalTime"), 0),
        })
    return groups


# ---------------------------------------------------------------------------
# Fallback (Rule-Based) Responses
# ---------------------------------------------------------------------------

FALLBACK_ANALYSIS = {
    "category": "personal",
    "priority": "medium",
    "estimated_minutes": 30,
    "subtasks": [],
    "reasoning": "AI analysis unavailable - using defaults",
}

_FALLBACK_BREAKDOWNS = [
    (
        ("code", "program", "develop", "project"),
        [
            "Set up development environment and open project files",
            "Review requirements and break down into small features",
            "Implement first small feature or function",
            "Test the implemented feature",
            "Add documentation and clean up code",
            "Commit changes and plan next steps",
        ],
    ),
    (
        ("study", "research", "learn", "read"),
        [
            "Gather all materials and create a quiet study space",
            "Create an outline of topics to cover",
            "Study first section for 25 minutes with notes",
            "Take a 5-minute break and review notes",
            "Study second section and make connections",
            "Summarize key points and create review cards",
        ],
    ),
    (
        ("write", "essay", "report", "paper"),
        [
            "Brainstorm ideas and create a rough outline",
            "Research and gather supporting materials",
            "Write the introduction paragraph",
            "Draft the main body sections",
            "Write conclusion and review overall flow",
            "Edit for clarity and check formatting",
        ],
    ),
    (
        ("assignment", "homework", "exercise"),
        [
            "Read assignment instructions carefully",
            "Gather all required materials and resources",
            "Break the assignment into smaller questions/parts",
            "Complete first part and check work",
            "Complete remaining parts one by one",
            "Review entire assignment before submitting",
        ],
    ),
]

_GENERIC_BREAKDOWN = [
    "Gather all materials and information needed",
    "Break the task into smaller, specific steps",
    "Complete first step and mark progress",
    "Work on remaining steps one at a time",
    "Review and finalize the completed work",
]


def _fallback_breakdown(title: str) -> list[str]:
    """Keyword-matched step list when LLM is unavailable."""
    title_lower = title.lower()
    for keywords, steps in _FALLBACK_BREAKDOWNS:
        if any(k in title_lower for k in keywords):
            return list(steps)
    return list(_GENERIC_BREAKDOWN)


# ---------------------------------------------------------------------------
# Main Service Functions
# ---------------------------------------------------------------------------


async def analyze_task(
    user_id: uuid.UUID,
    title: str,
    description: str | None,
    provider: LLMProvider | None,
    redis_client=None,
    daily_limit: int = 20,
) -> dict:
    """Classify a task. Returns the analysis plus an 'is_ai_generated' flag."""
    if provider is not None and await _within_limit(redis_client, user_id, daily_limit):
        try:
            prompt = ANALYZE_PROMPT.format(
                title=title, description=description or "No description provided"
            )
            raw = await provider.generate(ASSISTANT_SYSTEM_PROMPT, prompt, max_tokens=500)
            return {**_normalize_analysis(_parse_json_object(raw)), "is_ai_generated": True}
        except Exception:
            logger.exception("LLM task analysis failed")

    return {**FALLBACK_ANALYSIS, "is_ai_generated": False}


async def suggest_task_groups(
    user_id: uuid.UUID,
    tasks: list[dict],
    provider: LLMProvider | None,
    redis_client=None,
    daily_limit: int = 20,
) -> dict:
    """Suggest 2-3 groupings of related tasks. Fewer than two tasks yields none."""
    if len(tasks) < 2:
        return {"groups": [], "is_ai_generated": False}

    if provider is not None and await _within_limit(redis_client, user_id, daily_limit):
        task_list = "\n".join(
            f"{i}. {t['title']} ({t.get('priority', 'medium')} priority)"
            + (f" - {t['description']}" if t.get("description") else "")
            for i, t in enumerate(tasks, start=1)
        )
        try:
            raw = await provider.generate(
                ASSISTANT_SYSTEM_PROMPT, GROUP_PROMPT.format(task_list=task_list), max_tokens=800
            )
            return {"groups": _normalize_groups(_parse_json_object(raw)), "is_ai_generated": True}
        except Exception:
            logger.exception("LLM task grouping failed")

    return {"groups": [], "is_ai_generated": False}


async def break_down_task(
    user_id: uuid.UUID,
    title: str,
    description: str | None,
    provider: LLMProvider | None,
    redis_client=None,
    daily_limit: int = 20,
) -> dict:
    """Split a large task into 3-6 steps, falling back to a keyword template."""
    if provider is not None and await _within_limit(redis_client, user_id, daily_limit):
        try:
            prompt = BREAKDOWN_PROMPT.format(
                title=title, description=description or "No description provided"
            )
            raw = await provider.generate(ASSISTANT_SYSTEM_PROMPT, prompt, max_tokens=400)
            steps = [str(s).strip() for s in _parse_json_object(raw).get("steps") or []]
            steps = [s for s in steps if s]
            if steps:
                return {"steps": steps[:6], "is_ai_generated": True}
            logger.warning("LLM breakdown returned no steps, using fallback")
        except Exception:
            logger.exception("LLM task breakdown failed")

    return {"steps": _fallback_breakdown(title), "is_ai_generated": False}
