"""
CT/T side analysis.

``analyze_side_balance`` compares the two side ratings (vendor decimal scale)
and names the weaker side. ``analyze_sides`` runs the per-side deep-dive:
opening duel and aggression thresholds, utility misuse, trading, and the
"stats look fine but the side rating is still low" diagnostics.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field

from leetcoach.analysis.benchmarks import DEFAULT_TIER, meets_benchmark
from leetcoach.analysis.models import (
    BenchmarkTier,
    Metric,
    Side,
    SideBalance,
    SideSpecificInsights,
)
from leetcoach.analysis.normalize import (
    api_percentage_value,
    format_api_percentage,
    format_relative_rating,
)

M = Metric

# Side ratings closer than this are treated as noise
SIDE_IMBALANCE_GAP = 0.02


# ============================================================================
# Side balance
# ============================================================================


def analyze_side_balance(
    ct_rating: float, t_rating: float, stats: Mapping[Metric, float]
) -> SideBalance:
    """
    Detect a CT/T imbalance from the raw side ratings.

    Args:
        ct_rating: ``rating.ct_leetify`` as returned by the API (e.g. -0.05)
        t_rating: ``rating.t_leetify`` as returned by the API
        stats: Profile stats, used for the weak side's opening duel rate

    Returns:
        SideBalance with the weak side and advice, or no imbalance
    """
    gap = round(abs(ct_rating - t_rating), 10)
    if gap < SIDE_IMBALANCE_GAP:
        return SideBalance(has_imbalance=False)

    strong = format_relative_rating(max(ct_rating, t_rating) * 100)
    weak = format_relative_rating(min(ct_rating, t_rating) * 100)

    if ct_rating < t_rating:
        duel_pct = api_percentage_value(
            stats.get(M.CT_OPENING_DUEL_SUCCESS_PERCENTAGE, 0.0), M.CT_OPENING_DUEL_SUCCESS_PERCENTAGE
        )
        return SideBalance(
            has_imbalance=True,
            weak_side=Side.CT,
            advice=(
                f"Your CT side is weaker than T side ({weak} vs {strong}). "
                f"CT opening duel success: {duel_pct:.1f}%. "
                "Focus on holding angles rather than peeking, and use utility to delay pushes."
            ),
        )

    duel_pct = api_percentage_value(
        stats.get(M.T_OPENING_DUEL_SUCCESS_PERCENTAGE, 0.0), M.T_OPENING_DUEL_SUCCESS_PERCENTAGE
    )
    return SideBalance(
        has_imbalance=True,
        weak_side=Side.T,
        advice=(
            f"Your T side is weaker than CT side ({weak} vs {strong}). "
            f"T opening duel success: {duel_pct:.1f}%. "
            "Use more utility before peeking on T side and practice entry routes on your map pool."
        ),
    )


# ============================================================================
# Deep-dive
# ============================================================================


@dataclass
class _SideNotes:
    insights: list[str] = field(default_factory=list)
    drills: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def add(self, insights: list[str], drills: list[str], tags: list[str]) -> None:
        self.insights.extend(insights)
        self.drills.extend(drills)
        self.tags.extend(tags)


def _traffic_light(display_rating: float) -> str:
    if display_rating >= -2.0:
        return "🟢 Average"
    if display_rating >= -6.0:
        return "🟡 Below average"
    return "🔴 Significant improvement needed"


def _ct_notes(
    stats: Mapping[Metric, float], ct_display: float, tier: BenchmarkTier, ct: _SideNotes
) -> None:
    opening = api_percentage_value(
        stats.get(M.CT_OPENING_DUEL_SUCCESS_PERCENTAGE, 0.0), M.CT_OPENING_DUEL_SUCCESS_PERCENTAGE
    )
    aggression = api_percentage_value(
        stats.get(M.CT_OPENING_AGGRESSION_SUCCESS_RATE, 0.0), M.CT_OPENING_AGGRESSION_SUCCESS_RATE
    )

    if opening < 45:
        if opening < 25:
            ct.add(
                [
                    f"CT opening duels are failing badly ({opening:.1f}%): you're losing most first contacts",
                    "→ This suggests poor CT positioning and angle selection",
                ],
                [
                    "Stop wide peeking common angles. CTs should use tight angles and cover",
                    "Practice pre-aiming head level on every common peek (Long, Short, Ramp, etc.)",
                ],
                ["ct_angles", "ct_positioning"],
            )
        else:
            ct.add(
                [f"CT opening duels below average ({opening:.1f}%): work on angle selection"],
                [
                    "Learn 2-3 off-angles per site that give you advantages over T entries",
                    "Hold closer angles and use jiggle peeking to get information safely",
                ],
                ["ct_angles", "ct_positioning"],
            )

    if aggression < 40:
        if aggression < 20:
            ct.add(
                [
                    f"CT aggression is failing severely ({aggression:.1f}%): avoid pushing entirely",
                    "→ When you do push as CT, you're getting punished heavily",
                ],
                [
                    "Play purely passive: hold sites and rotate for retakes only",
                    "Focus on staying alive for rotates rather than seeking opening frags",
                ],
                ["ct_utility", "ct_positioning"],
            )
        else:
            ct.add(
                [f"CT pushes aren't working ({aggression:.1f}%): be more selective"],
                [
                    "Only push when you have info (teammate spotted enemies elsewhere)",
                    "Use utility before pushing: smoke/flash yourself in, don't dry peek",
                ],
                ["ct_utility", "ct_positioning"],
            )

    teamflash = stats.get(M.FLASHBANG_HIT_FRIEND_PER_FLASHBANG, 0.0)
    if not meets_benchmark(teamflash, M.FLASHBANG_HIT_FRIEND_PER_FLASHBANG, tier=tier):
        ct.add(
            [
                f"Teamflashing too much ({teamflash:.2f} teammates/flash)",
                "→ Your flashes are hitting teammates more than helping team",
            ],
            ["Learn CT pop-flashes that curve around corners. Never throw over teammates"],
            ["pop_flashes", "ct_utility"],
        )

    he_foes = stats.get(M.HE_FOES_DAMAGE_AVG, 0.0)
    he_friends = stats.get(M.HE_FRIENDS_DAMAGE_AVG, 0.0)
    if he_foes < 15 and he_friends > 3:
        ct.add(
            [
                "HE grenades hitting teammates more than enemies: poor nade timing",
                f"→ HE damage: {he_foes:.1f} to enemies, {he_friends:.1f} to teammates",
            ],
            ["Only throw HEs at confirmed enemy positions, never spam common spots"],
            ["he_grenades", "ct_utility"],
        )

    # Rating disagrees with the sampled stats
    if not ct.insights and ct_display < -2.0:
        rating_text = format_relative_rating(ct_display)
        if opening >= 37 and aggression >= 35:
            ct.add(
                [
                    f"CT side performance: {_traffic_light(ct_display)} ({rating_text}) "
                    "despite reasonable individual stats",
                    f"→ Stats show: CT opening duels {opening:.1f}%, aggression {aggression:.1f}%",
                    "→ Lower rating likely due to: poor round impact, excessive rotations, "
                    "or dying early in rounds",
                ],
                [
                    "Focus on staying alive longer on CT. Your job is to delay and gather info, not frag",
                    "Play more defensively: hold tight angles and rotate only when certain",
                ],
                [],
            )
        elif ct_display < -6.0:
            ct.add(
                [
                    f"CT side performance: 🔴 Significant improvement needed ({rating_text}): "
                    "major structural issues",
                    f"→ Stats: CT opening duels {opening:.1f}%, aggression success {aggression:.1f}%",
                    "→ This indicates: severe angle problems, over-aggressive play, "
                    "or poor utility usage",
                ],
                [
                    "Master basic CT fundamentals: hold standard angles, avoid risky peeks, stay alive",
                    "Stop all aggression on CT until basics are fixed. Play purely reactive and passive",
                ],
                [],
            )
        else:
            ct.add(
                [
                    f"CT side performance: 🟡 Below average ({rating_text}): "
                    "fundamental CT positioning needs work",
                    f"→ Stats: CT opening duels {opening:.1f}%, aggression {aggression:.1f}%",
                ],
                [
                    "Focus on basic CT holds: play standard angles until you understand site timings",
                    "Watch pro demos of your favorite map and see how CTs position on each site",
                ],
                [],
            )
        ct.tags.extend(["ct_positioning", "ct_angles", "ct_fundamentals"])

    if opening >= 45 and aggression < 30:
        ct.add(
            [
                f"Strong CT defense ({opening:.1f}% duel success) but avoid unnecessary risks",
                f"→ Your aggression success is low ({aggression:.1f}%): stick to what's working",
            ],
            [
                "Perfect your defensive holds: learn 3 different angles per site to avoid predictability",
                "Only push when you have clear intel: sound cue, teammate callout, or utility usage",
            ],
            ["ct_angles", "shoulder_peeking"],
        )

    if opening < 35:
        ct.add(
            [
                f"CT positioning fundamentals need major work: losing most defensive duels ({opening:.1f}%)",
                "→ Common CT mistakes: wide peeking, poor crosshair placement, "
                "or fighting at wrong ranges",
            ],
            [
                "Master close angles: play tight corners where rifles beat rifles, not long-range duels",
                "Pre-aim head height at common peek spots. CT side is about preparation, not reaction",
            ],
            ["ct_positioning", "crosshair_placement", "ct_angles"],
        )

    if opening < 40 and aggression > 45:
        ct.add(
            [
                f"CT economy optimization needed: aggressive plays ({aggression:.1f}% success) "
                "may cost crucial rounds",
                "→ On force-buy/eco rounds: play even more passively, preserve utility and positioning",
            ],
            [
                "Adjust aggression based on round type: save aggressive plays for full-buy rounds only",
                "On eco defense: stack sites, play for multi-kills with utility rather than individual duels",
            ],
            ["flash_buying", "ct_fundamentals"],
        )


def _t_notes(
    stats: Mapping[Metric, float], t_display: float, tier: BenchmarkTier, t: _SideNotes
) -> None:
    opening = api_percentage_value(
        stats.get(M.T_OPENING_DUEL_SUCCESS_PERCENTAGE, 0.0), M.T_OPENING_DUEL_SUCCESS_PERCENTAGE
    )
    aggression = api_percentage_value(
        stats.get(M.T_OPENING_AGGRESSION_SUCCESS_RATE, 0.0), M.T_OPENING_AGGRESSION_SUCCESS_RATE
    )

    if opening < 45:
        if opening < 25:
            t.add(
                [
                    f"T opening duels are failing badly ({opening:.1f}%): you're losing most entry attempts",
                    "→ This indicates poor T-side positioning and utility usage",
                ],
                [
                    "Never peek without utility: use pop-flashes or smoke executes before every entry",
                    "Practice shoulder peeking to get info before committing to full peeks",
                ],
                ["t_entry", "t_positioning", "pop_flashes"],
            )
        else:
            t.add(
                [f"T opening duels below average ({opening:.1f}%): entries need better setup"],
                [
                    "Coordinate with teammates: one person flashes, another peeks immediately",
                    "Learn basic T-side executes: A site smoke+flash, B site pop-flash entries",
                ],
                ["t_entry", "t_positioning", "pop_flashes"],
            )

    if aggression < 45:
        if aggression < 25:
            t.add(
                [
                    f"T entries are failing severely ({aggression:.1f}%): you're being shut down completely",
                    "→ Your T-side aggression attempts are almost always unsuccessful",
                ],
                [
                    "Focus on utility-heavy executes. Never dry peek angles CTs are watching",
                    "Practice 5-man executes with team utility rather than solo entries",
                ],
                ["t_entry", "flash_timing", "t_utility"],
            )
        else:
            t.add(
                [f"T aggression success is low ({aggression:.1f}%): entries need better timing"],
                [
                    "Time your peeks with utility: peek right as your flash pops, not before",
                    "Learn to trade your teammates: follow up immediately when someone dies",
                ],
                ["t_entry", "flash_timing", "t_utility"],
            )

    foes_per_flash = stats.get(M.FLASHBANG_HIT_FOE_PER_FLASHBANG, 0.0)
    if not meets_benchmark(foes_per_flash, M.FLASHBANG_HIT_FOE_PER_FLASHBANG, tier=tier):
        t.add(
            [
                f"T-side flashes not hitting enemies ({foes_per_flash:.2f} enemies/flash)",
                "→ Your T-side flashes are mostly whiffing and not blinding CTs",
            ],
            ["Learn specific T-side pop-flash lineups for each site entry"],
            ["pop_flashes", "t_utility"],
        )

    trade_kills = stats.get(M.TRADE_KILLS_SUCCESS_PERCENTAGE, 0.0)
    if not meets_benchmark(trade_kills, M.TRADE_KILLS_SUCCESS_PERCENTAGE, tier=tier):
        t.add(
            [
                f"Not trading teammates effectively "
                f"({format_api_percentage(trade_kills, M.TRADE_KILLS_SUCCESS_PERCENTAGE)} trade rate)",
                "→ When teammates die, you're failing to get the revenge frag",
            ],
            ["Stay closer to your entry fraggers and be ready to peek immediately when they die"],
            ["trade_positioning", "t_positioning"],
        )

    if not t.insights and t_display < -2.0:
        rating_text = format_relative_rating(t_display)
        if opening >= 37 and aggression >= 40:
            t.add(
                [
                    f"T side performance: {_traffic_light(t_display)} ({rating_text}) "
                    "despite reasonable individual stats",
                    f"→ Stats show: opening duels {opening:.1f}%, aggression {aggression:.1f}%",
                    "→ Lower rating likely due to: poor round conversion, isolated play, "
                    "or ineffective utility usage",
                ],
                [
                    "Focus on team coordination: your entries need to lead to round wins, not just frags",
                    "Work on post-entry follow-up: after getting an opening kill, "
                    "help team convert the advantage",
                ],
                [],
            )
        elif t_display < -6.0:
            t.add(
                [
                    f"T side performance: 🔴 Significant improvement needed ({rating_text}): "
                    "major fundamental issues",
                    f"→ Stats: T opening duels {opening:.1f}%, aggression success {aggression:.1f}%",
                    "→ This indicates: poor entry timing, inadequate utility use, "
                    "or playing too isolated from team",
                ],
                [
                    "Never peek without utility support: buy flashes/smokes every round and use them first",
                    "Stick with your team and coordinate site executes instead of going for solo plays",
                ],
                [],
            )
        else:
            t.add(
                [
                    f"T side performance: 🟡 Below average ({rating_text}): entry fundamentals need work",
                    f"→ Stats: T opening duels {opening:.1f}%, aggression success {aggression:.1f}%",
                ],
                [
                    "Learn basic T-side utility: buy flashes every round and use them before peeking",
                    "Practice coordinated site takes. Never go in alone without team support",
                ],
                [],
            )
        t.tags.extend(["t_positioning", "t_utility", "demo_review", "t_fundamentals"])

    if opening >= 45 and aggression >= 45:
        t.add(
            [
                f"Strong T-side entry skills ({opening:.1f}% opening duels, {aggression:.1f}% aggression)",
                "→ Your mechanics are solid, focus on converting these advantages into round wins",
            ],
            [
                "Work on post-entry positioning: after getting opening kill, help team trade and execute",
                "Learn to IGL your team after successful entries: call rotates and site executes",
            ],
            ["communication", "entry_fragger", "demo_review"],
        )

    if opening < 35:
        t.add(
            [
                f"T-side entry fundamentals need major improvement: struggling in opening duels ({opening:.1f}%)",
                "→ Common entry mistakes: dry peeking, poor timing, or fighting at CT's preferred angles",
            ],
            [
                "Never take opening duels without utility: buy flash/smoke every round, use before peeking",
                "Learn off-angle entries: peek from unexpected positions to catch CTs off-guard",
                "Practice jiggle peeking: gather info before committing to the duel",
            ],
            ["t_entry", "pop_flashes", "shoulder_peeking", "t_utility"],
        )

    if opening < 40 and aggression < 35:
        t.add(
            [
                f"T-side execution needs economic awareness: both opening ({opening:.1f}%) "
                f"and entries ({aggression:.1f}%) are weak",
                "→ On eco rounds: coordinate team rushes, avoid isolated 1v1s that give CTs easy trades",
            ],
            [
                "Learn eco round tactics: 5-man rushes with coordinated utility to overwhelm sites",
                "On force-buy rounds: play for picks with upgraded pistols, "
                "avoid committing to site executes",
            ],
            ["flash_buying", "communication", "t_fundamentals"],
        )


def analyze_sides(
    stats: Mapping[Metric, float],
    ct_rating_raw: float,
    t_rating_raw: float,
    tier: BenchmarkTier | None = None,
) -> SideSpecificInsights:
    """
    Per-side deep-dive.

    Side ratings arrive in the vendor decimal scale and are compared on the
    display scale (x100) against -2.0 and -6.0.
    """
    tier = tier or DEFAULT_TIER
    ct = _SideNotes()
    t = _SideNotes()

    _ct_notes(stats, ct_rating_raw * 100, tier, ct)
    _t_notes(stats, t_rating_raw * 100, tier, t)

    return SideSpecificInsights(
        ct_insights=tuple(ct.insights),
        t_insights=tuple(t.insights),
        ct_drills=tuple(ct.drills),
        t_drills=tuple(t.drills),
        ct_resource_tags=tuple(ct.tags),
        t_resource_tags=tuple(t.tags),
    )
