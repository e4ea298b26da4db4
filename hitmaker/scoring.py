# hitmaker/scoring.py
from __future__ import annotations

from typing import Dict, List

from hitmaker.models import CampaignResults, LabelState, ProjectStage

ACCESS_POINTS = {
    "playlist_access": {"niche": 10, "mid": 20, "flagship": 30},
    "press_access": {"blogs": 10, "mid_tier": 20, "national": 30},
}

SUCCESSFUL_ARTIST_POPULARITY = 50.0
POINTS_PER_SUCCESSFUL_ARTIST = 5
POINTS_PER_RELEASED_PROJECT = 2

FAILURE_SCORE = 50
SURVIVAL_SCORE = 100
DOMINANCE_RATIO = 1.5
BALANCE_RATIO = 0.7


def access_tier_bonus(state: LabelState) -> int:
    game = state.game
    return sum(points.get(getattr(game, attr), 0) for attr, points in ACCESS_POINTS.items())


def score_breakdown(state: LabelState) -> Dict[str, int]:
    game = state.game
    return {
        "money": max(0, game.money // 1000),
        "reputation": max(0, int(game.reputation // 5)),
        "artists_successful": POINTS_PER_SUCCESSFUL_ARTIST * sum(
            1 for a in state.artists.values() if a.popularity >= SUCCESSFUL_ARTIST_POPULARITY),
        "projects_completed": POINTS_PER_RELEASED_PROJECT * sum(
            1 for p in state.projects.values() if p.stage == ProjectStage.RELEASED),
        "access_tier_bonus": access_tier_bonus(state),
    }


def victory_type(final_score: int, breakdown: Dict[str, int], money: int) -> str:
    """
    Failure / Survival by score, otherwise whichever of money and reputation
    dominates; close to even is Balanced Growth.
    """
    if money < 0 or final_score < FAILURE_SCORE:
        return "Failure"
    if final_score < SURVIVAL_SCORE:
        return "Survival"

    m = breakdown["money"]
    r = breakdown["reputation"]
    if m > r * DOMINANCE_RATIO:
        return "Commercial Success"
    if r > m * DOMINANCE_RATIO:
        return "Critical Acclaim"
    if max(m, r) > 0 and min(m, r) / max(m, r) >= BALANCE_RATIO:
        return "Balanced Growth"
    return "Commercial Success"


def achievements(breakdown: Dict[str, int], state: LabelState) -> List[str]:
    game = state.game
    out: List[str] = []

    if breakdown["money"] >= 1000:
        out.append("Millionaire: ended with $1M+")
    elif breakdown["money"] >= 100:
        out.append("Big Money: ended with $100k+")
    elif breakdown["money"] >= 50:
        out.append("Profitable: ended with $50k+")

    if game.reputation >= 80:
        out.append("Industry Legend: 80+ reputation")
    elif game.reputation >= 50:
        out.append("Well Known: 50+ reputation")

    if game.playlist_access == "flagship" and game.press_access == "national":
        out.append("Media Mogul: top playlist and press access")

    if any(s.peak_position == 1 for s in state.songs.values()):
        out.append("Chart Topper: a song reached #1")

    if game.money >= 0 and not out:
        out.append(f"Survivor: made it through {game.current_month} months")
    return out


def narrative(kind: str, final_score: int, state: LabelState) -> str:
    money_k = state.game.money / 1000
    rep = round(state.game.reputation, 1)
    if kind == "Commercial Success":
        return (f"Your label became a commercial powerhouse, finishing with ${money_k:,.0f}k "
                f"in the bank and {rep} reputation.")
    if kind == "Critical Acclaim":
        return (f"Critics and artists alike respect the label: {rep} reputation, "
                f"even if the bank shows ${money_k:,.0f}k.")
    if kind == "Balanced Growth":
        return f"Money and reputation grew together: ${money_k:,.0f}k and {rep} reputation."
    if kind == "Survival":
        return f"You survived the industry with ${money_k:,.0f}k and {rep} reputation."
    if kind == "Failure":
        return (f"The industry proved too tough this time: ${money_k:,.0f}k and {rep} reputation "
                f"for a final score of {final_score}.")
    return f"The campaign ended with a final score of {final_score}."


def campaign_results(state: LabelState) -> CampaignResults:
    breakdown = score_breakdown(state)
    final = sum(breakdown.values())
    kind = victory_type(final, breakdown, state.game.money)
    return CampaignResults(
        final_score=final,
        score_breakdown=breakdown,
        victory_type=kind,
        summary=narrative(kind, final, state),
        achievements=achievements(breakdown, state),
        campaign_completed=True,
    )
