"""
Text Intelligence - turn airport security headlines into a checkpoint risk estimate

Primary path: Gemini reads the headlines with a scoring rubric and answers in
JSON. Fallback path: deterministic keyword matching, used whenever the model
is not configured, errors, times out or answers with something unparseable.
"""

import json
import logging
import math
import re
from typing import Any, Dict, List, Optional, Protocol, Sequence

from google import genai
from google.genai.types import GenerateContentConfig, HttpOptions

from flightrisk.core.config import get_settings
from flightrisk.models.signals import NewsHeadline, SecurityIntelligenceEstimate
from flightrisk.prompts.manager import PromptManager, get_prompt_manager

logger = logging.getLogger(__name__)

NEUTRAL_RISK_SCORE = 0.15
PROMPT_CONFIG = "security_intel"

WAIT_BUCKETS = ("unknown", "low", "moderate", "high", "severe")
CONFIDENCE_LEVELS = ("low", "medium", "high")

# (pattern, floor, issue, wait bucket), strongest first
KEYWORD_RULES = (
    (re.compile(r"closure|closed|evacuat|shutdown"), 0.85,
     "Possible airport closure or evacuation", "severe"),
    (re.compile(r"bomb|threat|suspicious package|security breach"), 0.80,
     "Security incident reported", "severe"),
    (re.compile(r"strike|walkout|protest|labor action"), 0.70,
     "Labor action or protest affecting operations", "high"),
    (re.compile(r"outage|system down|technical issue|computer problem"), 0.65,
     "System outage or technical problems", "high"),
    (re.compile(r"long line|wait time|delay|slow|crowded"), 0.50,
     "Extended wait times reported", "moderate"),
    (re.compile(r"staff shortage|understaffed|short staff|staffing"), 0.45,
     "Staffing issues", "moderate"),
)


def estimate_wait_minutes(bucket: str) -> int:
    """Approximate checkpoint minutes for a qualitative wait bucket"""
    mapping = {
        "unknown": 20,
        "low": 15,
        "moderate": 35,
        "high": 60,
        "severe": 90,
    }
    return mapping.get(bucket, 20)


def default_estimate() -> SecurityIntelligenceEstimate:
    """Estimate used when there are no headlines to read"""
    return SecurityIntelligenceEstimate(
        risk_score=NEUTRAL_RISK_SCORE,
        issues=[],
        wait_estimate="unknown",
        advisory="No recent security news. Normal precautions advised.",
        confidence="low",
        summary="No specific security concerns detected in recent news.",
        method="default"
    )


def _titles(headlines: Sequence[Any]) -> List[str]:
    titles = []
    for headline in headlines or []:
        title = headline.title if isinstance(headline, NewsHeadline) else headline
        if isinstance(title, str) and title.strip():
            titles.append(title.strip())
    return titles


def keyword_fallback(headlines: Sequence[Any], airport_code: str) -> SecurityIntelligenceEstimate:
    """
    Deterministic keyword estimate

    Rule floors combine by maximum. The wait bucket comes from the strongest
    rule that matched; confidence is "medium" if any rule matched.
    """
    combined = " ".join(t.lower() for t in _titles(headlines))

    score = NEUTRAL_RISK_SCORE
    issues: List[str] = []
    bucket = "unknown"
    strongest = 0.0

    for pattern, floor, issue, rule_bucket in KEYWORD_RULES:
        if pattern.search(combined):
            issues.append(issue)
            score = max(score, floor)
            if floor > strongest:
                strongest = floor
                bucket = rule_bucket

    if score > 0.7:
        advisory = "Arrive 2+ hours early. Consider backup travel plans. Check airport status frequently."
    elif score > 0.4:
        advisory = "Arrive 60-90 minutes earlier than usual. Check real-time airport updates."
    else:
        advisory = "Monitor airport status before departure."

    if issues:
        summary = f"Recent news indicates: {', '.join(issues)}. Extra time recommended."
    else:
        summary = f"Limited recent security news for {airport_code}. Normal precautions advised."

    return SecurityIntelligenceEstimate(
        risk_score=score,
        issues=issues,
        wait_estimate=bucket,
        advisory=advisory,
        confidence="medium" if issues else "low",
        summary=summary,
        method="keyword"
    )


def _coerce_score(value: Any) -> float:
    if isinstance(value, bool):
        return NEUTRAL_RISK_SCORE
    try:
        score = float(value)
    except (TypeError, ValueError):
        return NEUTRAL_RISK_SCORE
    if math.isnan(score):
        return NEUTRAL_RISK_SCORE
    return max(0.0, min(1.0, score))


def coerce_estimate(data: Dict[str, Any]) -> SecurityIntelligenceEstimate:
    """
    Build an estimate from a model answer, tolerating camelCase or snake_case keys

    Out-of-range scores are clamped; a missing or non-numeric score becomes the
    neutral default. Unknown buckets and confidence levels fall back to
    "unknown" / "low".
    """
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

    issues = data.get("keyIssues", data.get("issues")) or []
    if not isinstance(issues, list):
        issues = [issues]

    bucket = data.get("waitTimeEstimate", data.get("wait_estimate"))
    confidence = data.get("confidence")

    return SecurityIntelligenceEstimate(
        risk_score=_coerce_score(data.get("riskScore", data.get("risk_score"))),
        issues=[str(i) for i in issues if i],
        wait_estimate=bucket if bucket in WAIT_BUCKETS else "unknown",
        advisory=str(data.get("recommendation", data.get("advisory")) or ""),
        confidence=confidence if confidence in CONFIDENCE_LEVELS else "low",
        summary=str(data.get("summary") or ""),
        method="llm"
    )


def _extract_response_text(response: Any) -> str:
    """Extract text robustly from Gemini response across client modes."""
    response_text = getattr(response, "text", None)
    if response_text:
        return response_text

    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ""

    parts = getattr(getattr(candidates[0], "content", None), "parts", None) or []
    return "".join(part.text for part in parts if getattr(part, "text", None))


def _repair_and_parse_json(raw_text: str) -> Dict[str, Any]:
    """Strip fences, citation markers and trailing commas, then parse one JSON object."""
    if not raw_text:
        raise ValueError("Empty model response")

    text = raw_text.replace("\ufeff", "").strip()
    text = re.sub(r"\[\d+(?:,\s*\d+)*\]", "", text)

    fence_match = re.search(r"```(?:json)?\s*(.*?)\s*```", text, re.DOTALL | re.IGNORECASE)
    if fence_match:
        text = fence_match.group(1)

    brace_match = re.search(r"\{.*\}", text, re.DOTALL)
    if brace_match:
        text = brace_match.group(0)

    parse_error: Optional[Exception] = None
    for candidate in (text, re.sub(r",\s*([\]}])", r"\1", text)):
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError as e:
            parse_error = e
            continue
        if not isinstance(parsed, dict):
            raise ValueError("Model response is not a JSON object")
        return parsed

    raise parse_error or ValueError("Unable to parse JSON")


class HeadlineSummarizer(Protocol):
    """Anything that reads headlines and answers with an estimate mapping"""

    def summarize_headlines(
        self,
        headlines: Sequence[NewsHeadline],
        airport_code: str,
        airport_name: Optional[str] = None
    ) -> Dict[str, Any]:
        ...


class GeminiHeadlineSummarizer:
    """
    Gemini-backed summarizer (API key or Vertex AI)

    Raises on any failure; the extractor owns the fallback.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        project_id: Optional[str] = None,
        location: Optional[str] = None,
        prompt_manager: Optional[PromptManager] = None,
        client: Optional[Any] = None,
        model_name: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None
    ):
        settings = get_settings()
        # Explicit arguments, then settings, then the prompt config
        self.model_name = model_name or settings.default_model_name
        self.temperature = temperature if temperature is not None else settings.default_temperature
        self.max_output_tokens = max_output_tokens or settings.max_output_tokens
        self.project_id = project_id or settings.gcp_project_id
        self.location = location or settings.gcp_location
        self.api_key = api_key or settings.google_gemini_api_key
        self.prompt_manager = prompt_manager or get_prompt_manager()

        if client is not None:
            self.client = client
            self.client_type = "injected"
        elif self.project_id:
            self.client = genai.Client(
                vertexai=True,
                project=self.project_id,
                location=self.location
            )
            self.client_type = "vertex_ai"
            logger.info(f"Initialized Vertex AI client: {self.project_id} @ {self.location}")
        elif self.api_key:
            self.client = genai.Client(
                api_key=self.api_key,
                http_options=HttpOptions(api_version="v1")
            )
            self.client_type = "api_key"
            logger.info("Initialized Google AI client with API Key")
        else:
            raise ValueError("Neither GOOGLE_GEMINI_API_KEY nor GCP_PROJECT_ID configured")

    def summarize_headlines(
        self,
        headlines: Sequence[NewsHeadline],
        airport_code: str,
        airport_name: Optional[str] = None
    ) -> Dict[str, Any]:
        lines = "\n".join(
            f'{i}. "{h.title}" ({h.publish_date or "undated"})'
            for i, h in enumerate(headlines, start=1)
        )
        prompt_data = self.prompt_manager.format_prompt(
            PROMPT_CONFIG,
            {
                "airport_code": airport_code,
                "airport_name": airport_name or airport_code,
                "headlines": lines
            }
        )
        params = prompt_data["parameters"]
        temperature = self.temperature if self.temperature is not None else params.get("temperature", 0.3)
        max_output_tokens = self.max_output_tokens or params.get("max_output_tokens", 1024)

        response = self.client.models.generate_content(
            model=self.model_name or prompt_data["model_name"],
            contents=prompt_data["prompt"],
            config=GenerateContentConfig(
                system_instruction=prompt_data["system_instruction"] or None,
                temperature=temperature,
                max_output_tokens=max_output_tokens,
                response_mime_type="application/json"
            )
        )
        return _repair_and_parse_json(_extract_response_text(response))


class SecurityIntelligenceExtractor:
    """Headlines -> SecurityIntelligenceEstimate, never raises"""

    def __init__(self, summarizer: Optional[HeadlineSummarizer] = None):
        self.summarizer = summarizer

    def extract(
        self,
        headlines: Sequence[NewsHeadline],
        airport_code: str,
        airport_name: Optional[str] = None
    ) -> SecurityIntelligenceEstimate:
        """
        Produce a checkpoint risk estimate from headlines

        Args:
            headlines: Deduplicated security/disruption headlines
            airport_code: IATA code of the airport
            airport_name: Display name used in the prompt (defaults to the code)

        Returns:
            SecurityIntelligenceEstimate with method "default", "llm" or "keyword"
        """
        if not headlines:
            return default_estimate()

        if self.summarizer is None:
            logger.info(f"No text model configured, keyword analysis for {airport_code}")
            return keyword_fallback(headlines, airport_code)

        try:
            logger.info(f"Analyzing {len(headlines)} headlines for {airport_code}")
            estimate = coerce_estimate(
                self.summarizer.summarize_headlines(headlines, airport_code, airport_name)
            )
            logger.info(
                f"Analysis complete for {airport_code} - risk {estimate.risk_score:.2f}, "
                f"confidence {estimate.confidence}"
            )
            return estimate
        except Exception as e:
            logger.warning(f"Headline analysis failed for {airport_code}, using keyword fallback: {str(e)}")
            return keyword_fallback(headlines, airport_code)


_extractor: Optional[SecurityIntelligenceExtractor] = None


def get_security_extractor() -> SecurityIntelligenceExtractor:
    """
    Get singleton extractor, wired to Gemini when a key or project is configured
    """
    global _extractor
    if _extractor is None:
        summarizer = None
        if get_settings().has_llm():
            try:
                summarizer = GeminiHeadlineSummarizer()
            except Exception as e:
                logger.warning(f"Gemini client unavailable, keyword analysis only: {str(e)}")
        _extractor = SecurityIntelligenceExtractor(summarizer)
    return _extractor
