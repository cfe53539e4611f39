"""
Signal Scorers - map raw provider payloads to comparable [0, 1] risk scores

Every scorer is total: malformed or missing input degrades to a documented
fallback score with an explanation, never an exception. Inside a scorer,
hazard features combine by maximum so a single severe feature dominates.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import List, NamedTuple, Optional, Sequence, Tuple, Union

from flightrisk.models.flight import FlightOperationsSnapshot
from flightrisk.models.signals import (
    AirportWeatherForecast,
    CheckpointWaitRecord,
    FallbackCheckpointResult,
    ForecastHour,
    NewsHeadline,
    PrimaryCheckpointResult,
    SecurityIntelligenceEstimate,
)
from flightrisk.services.intelligence import estimate_wait_minutes

logger = logging.getLogger(__name__)


class SignalScore(NamedTuple):
    """Score in [0, 1] plus a short explanation with embedded values"""
    score: float
    explanation: str


# Fallback scores when a signal is absent
OPS_NOT_FOUND_SCORE = 0.25
WEATHER_FALLBACK_SCORE = 0.20
CHECKPOINT_FALLBACK_SCORE = 0.15
NEWS_EMPTY_SCORE = 0.05

# (upper bound in minutes, score); the last band is open-ended
DELAY_BANDS: Tuple[Tuple[float, float], ...] = (
    (15, 0.05),
    (30, 0.15),
    (60, 0.35),
    (120, 0.60),
)
DELAY_OVER_MAX_SCORE = 0.85

# (exclusive upper bound in kph, score)
WIND_BANDS: Tuple[Tuple[float, float], ...] = (
    (20, 0.05),
    (35, 0.15),
    (50, 0.40),
    (70, 0.70),
)
WIND_OVER_MAX_SCORE = 0.90

# (threshold, floor) pairs: value strictly above / below threshold proposes the floor
GUST_FLOORS = ((45, 0.50), (65, 0.75))
VISIBILITY_FLOORS = ((10, 0.10), (5, 0.35), (2, 0.60), (1, 0.85))
PRECIP_FLOORS = ((1, 0.15), (5, 0.35), (10, 0.55))

THUNDER_RE = re.compile(r"thunder|lightning|storm")
SNOW_RE = re.compile(r"snow|freez|ice|sleet|blizzard")
RAIN_RE = re.compile(r"rain|drizzle|shower")
FOG_RE = re.compile(r"fog|mist")

# Lead time below the bound dominates the checkpoint score regardless of waits
SHORT_LEAD_FLOORS = ((45, 0.90), (60, 0.70), (90, 0.40))
AMPLE_LEAD_MINUTES = 180
AMPLE_LEAD_SCORE = 0.05

# (exclusive upper bound on average wait, score)
AVERAGE_WAIT_BANDS = ((10, 0.05), (20, 0.15), (30, 0.30), (45, 0.50))
AVERAGE_WAIT_OVER_MAX_SCORE = 0.70
MAX_WAIT_FLOORS = ((60, 0.60), (90, 0.75))
RECENT_RECORD_LIMIT = 6

# Disjoint disruption classes: (pattern, floor, tag)
NEWS_KEYWORD_CLASSES = (
    (re.compile(r"\bstrike|walkout|industrial action|labou?r (?:dispute|action)"), 0.80, "STRIKE"),
    (re.compile(r"outage|system failure|meltdown|cyberattack|cyber attack"), 0.75, "OUTAGE"),
    (re.compile(r"ground stop|ground delay program|\bgdp\b|\bedct\b"), 0.70, "GROUND-STOP"),
    (re.compile(r"airport closure|runway closure|airport closed|runway closed"), 0.70, "CLOSURE"),
    (re.compile(r"cancel"), 0.65, "CANCELLATIONS"),
    (re.compile(r"\batc\b|air traffic|controller shortage"), 0.60, "ATC"),
    (re.compile(r"hurricane|typhoon|blizzard|severe storm"), 0.60, "SEVERE-WEATHER"),
    (re.compile(r"delay"), 0.40, "delays"),
    (re.compile(r"storm|weather advisory|\bfog\b"), 0.35, "weather"),
    (re.compile(r"maintenance|crew shortage|staffing"), 0.30, "ops-issues"),
)


def clamp01(value: float) -> float:
    """Clamp into [0, 1]"""
    return max(0.0, min(1.0, value))


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def _delay_band_score(delay_minutes: float) -> float:
    for upper, score in DELAY_BANDS:
        if delay_minutes <= upper:
            return score
    return DELAY_OVER_MAX_SCORE


def score_operations(snapshot: Optional[FlightOperationsSnapshot]) -> SignalScore:
    """
    Score live flight operations

    Delay bands: <=15m 0.05, <=30m 0.15, <=60m 0.35, <=120m 0.60, else 0.85.
    Status overrides win over the delay: cancelled 1.0, diverted 0.95,
    landed 0.05, active at least 0.10. A flight that cannot be found scores
    0.25 - an unresolvable flight number is a weak risk signal, not a
    confirmed disruption.

    Args:
        snapshot: FlightOperationsSnapshot, or None if the flight was not found

    Returns:
        SignalScore
    """
    if snapshot is None:
        return SignalScore(OPS_NOT_FOUND_SCORE, "ops: flight not found (check flight number)")

    try:
        delay = snapshot.delay_minutes()
    except Exception as e:
        logger.warning(f"Delay calculation failed, assuming on time: {str(e)}")
        delay = 0.0

    status = snapshot.status
    score = _delay_band_score(delay)
    delay_text = f"delay≈{round(delay)}m"

    if "cancel" in status:
        return SignalScore(1.0, "ops: CANCELLED")
    if "divert" in status:
        return SignalScore(0.95, "ops: DIVERTED")
    if "landed" in status:
        return SignalScore(0.05, f"ops: landed ({delay_text})")
    if "active" in status:
        return SignalScore(max(score, 0.10), f"ops: active ({delay_text})")

    return SignalScore(score, f"ops: {status or 'unknown'} ({delay_text})")


# ---------------------------------------------------------------------------
# Weather
# ---------------------------------------------------------------------------

def _window_sample(
    hours: Sequence[ForecastHour],
    anchor: datetime,
    window_hours: int
) -> List[ForecastHour]:
    start = anchor.replace(minute=0, second=0, microsecond=0)
    end = start + timedelta(hours=window_hours)
    return [h for h in hours if h.time is not None and start <= h.time <= end]


def _wind_score(max_wind: float) -> float:
    for upper, score in WIND_BANDS:
        if max_wind < upper:
            return score
    return WIND_OVER_MAX_SCORE


def score_weather(
    forecast: Optional[AirportWeatherForecast],
    window_hours: int = 6,
    now: Optional[datetime] = None,
    label: str = "wx"
) -> SignalScore:
    """
    Score an airport forecast over a short window

    The sample is the hours within [anchor, anchor + window], anchored on the
    feed's current hour when it exposes one, otherwise on `now`. An empty
    window falls back to the first 6 available hours.

    Each hazard feature proposes a candidate score; the result is the maximum
    of all proposals, never an average, so a single thunderstorm hour is not
    diluted by calm ones.

    Args:
        forecast: Parsed forecast, or None if the airport could not be resolved
        window_hours: Look-ahead window
        now: Reference time (defaults to the current UTC time)
        label: Explanation prefix, e.g. "wx dep"

    Returns:
        SignalScore (0.20 if no forecast data)
    """
    if forecast is None or not forecast.hours:
        return SignalScore(WEATHER_FALLBACK_SCORE, f"{label}: no forecast data available")

    try:
        anchor = forecast.current_hour or now or datetime.now(timezone.utc)
        sample = _window_sample(forecast.hours, anchor, window_hours)
        if not sample:
            sample = list(forecast.hours[:6])

        max_wind = max([h.wind_kph or 0.0 for h in sample] + [0.0])
        max_gust = max([h.gust_kph or 0.0 for h in sample] + [0.0])
        min_vis = min([h.vis_km if h.vis_km is not None else 10.0 for h in sample] + [10.0])
        max_precip = max([h.precip_mm or 0.0 for h in sample] + [0.0])
        conditions = " ".join(h.condition_text.lower() for h in sample)

        thunder = bool(THUNDER_RE.search(conditions))
        snow = bool(SNOW_RE.search(conditions))
        rain = bool(RAIN_RE.search(conditions))
        fog = bool(FOG_RE.search(conditions))

        proposals = [_wind_score(max_wind)]
        proposals += [floor for threshold, floor in GUST_FLOORS if max_gust > threshold]
        proposals += [floor for threshold, floor in VISIBILITY_FLOORS if min_vis < threshold]
        proposals += [floor for threshold, floor in PRECIP_FLOORS if max_precip > threshold]
        if thunder:
            proposals.append(0.70)
        if snow:
            proposals.append(0.60)
        if fog and min_vis < 3:
            proposals.append(0.50)
        if rain and max_precip > 5:
            proposals.append(0.40)

        flags = "".join([
            " THUNDER" if thunder else "",
            " SNOW" if snow else "",
            " FOG" if fog else "",
        ])
        explanation = (
            f"{label}: wind={round(max_wind)}kph gust={round(max_gust)}kph "
            f"vis={min_vis:.1f}km precip={max_precip:.1f}mm{flags}"
        )
        return SignalScore(clamp01(max(proposals)), explanation)

    except Exception as e:
        logger.error(f"Weather scoring error: {str(e)}")
        return SignalScore(WEATHER_FALLBACK_SCORE, f"{label}: error parsing forecast data")


# ---------------------------------------------------------------------------
# Checkpoint wait
# ---------------------------------------------------------------------------

def _short_lead_floor(lead_minutes: float) -> Optional[float]:
    for upper, floor in SHORT_LEAD_FLOORS:
        if lead_minutes < upper:
            return floor
    return None


def score_checkpoint_wait(
    records: Sequence[CheckpointWaitRecord],
    lead_minutes: float
) -> SignalScore:
    """
    Score checkpoint telemetry against the traveler's lead time

    Uses the 6 most recent records. A short lead time (<45/60/90 min) alone
    dominates; >=180 min is ample (0.05). Between 90 and 180 min the average
    wait drives the score, raised by spikes in the max wait. A very high
    average (>45 min) still forces at least 0.40 when the lead is >=120 min.

    Args:
        records: Wait records (possibly empty)
        lead_minutes: Minutes between checkpoint arrival and departure

    Returns:
        SignalScore (0.15 if no usable records)
    """
    try:
        usable = [
            r for r in records
            if r is not None and r.timestamp is not None and r.wait_minutes is not None and r.wait_minutes >= 0
        ]
        recent = sorted(usable, key=lambda r: r.timestamp, reverse=True)[:RECENT_RECORD_LIMIT]

        if not recent:
            return SignalScore(CHECKPOINT_FALLBACK_SCORE, "tsa: no recent data")

        waits = [r.wait_minutes for r in recent]
        avg = sum(waits) / len(waits)
        peak = max(waits)

        short_floor = _short_lead_floor(lead_minutes)
        if short_floor is not None:
            score = short_floor
        elif lead_minutes >= AMPLE_LEAD_MINUTES:
            score = AMPLE_LEAD_SCORE
        else:
            score = AVERAGE_WAIT_OVER_MAX_SCORE
            for upper, band_score in AVERAGE_WAIT_BANDS:
                if avg < upper:
                    score = band_score
                    break
            for threshold, floor in MAX_WAIT_FLOORS:
                if peak > threshold:
                    score = max(score, floor)

        # A checkpoint in crisis is not fully offset by an ample buffer
        if lead_minutes >= 120 and avg > 45:
            score = max(score, 0.40)

        explanation = f"tsa: avg={round(avg)}min max={round(peak)}min lead={round(lead_minutes)}min"
        return SignalScore(clamp01(score), explanation)

    except Exception as e:
        logger.error(f"Checkpoint scoring error: {str(e)}")
        return SignalScore(CHECKPOINT_FALLBACK_SCORE, "tsa: error parsing data")


def score_checkpoint_estimate(
    estimate: SecurityIntelligenceEstimate,
    lead_minutes: float
) -> SignalScore:
    """
    Score a text-intelligence estimate standing in for telemetry

    The estimate's risk score is raised by the same short-lead floors the
    telemetry scorer uses.
    """
    score = clamp01(estimate.risk_score)
    short_floor = _short_lead_floor(lead_minutes)
    if short_floor is not None:
        score = max(score, short_floor)

    issues = f" issues=[{'; '.join(estimate.issues)}]" if estimate.issues else ""
    explanation = (
        f"tsa (news fallback, confidence={estimate.confidence}): "
        f"wait={estimate.wait_estimate}≈{estimate_wait_minutes(estimate.wait_estimate)}min"
        f"{issues} lead={round(lead_minutes)}min"
    )
    return SignalScore(score, explanation)


def score_checkpoint(result, lead_minutes: float) -> SignalScore:
    """
    Score whichever evidence the resolver settled on

    Args:
        result: CheckpointWaitResult (primary, fallback or unavailable), or None
        lead_minutes: Minutes between checkpoint arrival and departure

    Returns:
        SignalScore whose explanation names the evidentiary basis
    """
    if isinstance(result, PrimaryCheckpointResult):
        return score_checkpoint_wait(result.records, lead_minutes)
    if isinstance(result, FallbackCheckpointResult):
        return score_checkpoint_estimate(result.estimate, lead_minutes)
    return SignalScore(CHECKPOINT_FALLBACK_SCORE, "tsa: no telemetry or news available")


# ---------------------------------------------------------------------------
# News
# ---------------------------------------------------------------------------

def score_news(headlines: Sequence[Union[NewsHeadline, str]]) -> SignalScore:
    """
    Score disruption news for the flight's airline and route

    Keyword classes each propose a severity floor and are combined by
    maximum, never summed, so one article matching several classes cannot
    run away. An empty batch scores near zero rather than zero.

    Args:
        headlines: NewsHeadline objects or bare title strings

    Returns:
        SignalScore with matched keyword tags in the explanation
    """
    titles = []
    for headline in headlines or []:
        title = headline.title if isinstance(headline, NewsHeadline) else headline
        if isinstance(title, str) and title.strip():
            titles.append(title.lower())

    if not titles:
        return SignalScore(NEWS_EMPTY_SCORE, "news: no relevant alerts")

    joined = " | ".join(titles)
    score = NEWS_EMPTY_SCORE
    tags = []
    for pattern, floor, tag in NEWS_KEYWORD_CLASSES:
        if pattern.search(joined):
            score = max(score, floor)
            tags.append(tag)

    count = len(titles)
    tag_text = f" [{', '.join(tags)}]" if tags else ""
    explanation = f"news: {count} article{'s' if count != 1 else ''}{tag_text}"
    return SignalScore(clamp01(score), explanation)
