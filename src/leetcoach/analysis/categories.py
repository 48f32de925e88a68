"""
Per-category analyzers.

Each analyzer walks a fixed checklist of benchmark checks for its category and
collects issues, drills and resource tags. A category with no failing check
gets a single "performing well" line and ``AreaStatus.OK``.

Aim, positioning and utility ratings are 0-100. Opening and clutch ratings are
relative values on the display scale (roughly -15..+15).
"""

from collections.abc import Mapping
from dataclasses import dataclass, field

from leetcoach.analysis.benchmarks import DEFAULT_TIER, meets_benchmark
from leetcoach.analysis.models import (
    AreaStatus,
    BenchmarkTier,
    Category,
    ImprovementArea,
    Metric,
    Side,
)
from leetcoach.analysis.normalize import format_api_percentage, format_relative_rating

M = Metric

CATEGORY_EMOJI = {
    Category.AIM: "🎯",
    Category.POSITIONING: "🗺️",
    Category.UTILITY: "💣",
    Category.OPENING: "⚔️",
    Category.CLUTCH: "🧠",
}


@dataclass
class _Findings:
    """Mutable accumulator used while a checklist runs."""

    category: Category
    rating: float
    issues: list[str] = field(default_factory=list)
    drills: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def add(self, issue: str, drills: list[str], tags: list[str]) -> None:
        self.issues.append(issue)
        self.drills.extend(drills)
        self.tags.extend(tags)

    def build(self, ok_line: str) -> ImprovementArea:
        emoji = CATEGORY_EMOJI[self.category]
        if not self.issues:
            return ImprovementArea(
                category=self.category,
                rating=self.rating,
                emoji=emoji,
                issues=(ok_line,),
                status=AreaStatus.OK,
            )
        return ImprovementArea(
            category=self.category,
            rating=self.rating,
            emoji=emoji,
            issues=tuple(self.issues),
            drills=tuple(self.drills),
            resource_tags=tuple(self.tags),
            status=AreaStatus.ISSUE,
        )


def _value(stats: Mapping[Metric, float], metric: Metric) -> float:
    return stats.get(metric, 0.0)


def _pct(stats: Mapping[Metric, float], metric: Metric) -> str:
    return format_api_percentage(_value(stats, metric), metric)


def _absolute_wording(rating: float, benchmark: float) -> str:
    difference = rating - benchmark
    if difference >= 15:
        return "excellent"
    if difference >= 5:
        return "good"
    return "solid"


def _relative_wording(rating: float, benchmark: float, fallback: str) -> str:
    difference = rating - benchmark
    if difference >= 5:
        return "excellent"
    if difference >= 0:
        return "good"
    return fallback


# ============================================================================
# Aim
# ============================================================================


def analyze_aim(
    stats: Mapping[Metric, float],
    rating: float,
    tier: BenchmarkTier = DEFAULT_TIER,
    weak_side: Side | None = None,
) -> ImprovementArea:
    findings = _Findings(Category.AIM, rating)

    def ok(metric: Metric) -> bool:
        return meets_benchmark(_value(stats, metric), metric, tier=tier)

    accuracy_ok = ok(M.ACCURACY_ENEMY_SPOTTED)
    if not accuracy_ok:
        findings.add(
            f"Low accuracy when enemy spotted ({_pct(stats, M.ACCURACY_ENEMY_SPOTTED)}, "
            f"aim for {tier.stats[M.ACCURACY_ENEMY_SPOTTED] * 100:.0f}%+)",
            ["aim_botz: 100 kills at close/medium range daily, focus on crosshair placement not speed"],
            ["aim_accuracy"],
        )

    # Headshot message depends on whether raw accuracy already passed
    if not ok(M.ACCURACY_HEAD):
        if accuracy_ok:
            findings.add(
                f"You hit your shots but aim body too often "
                f"({_pct(stats, M.ACCURACY_HEAD)} headshots)",
                [
                    "Your accuracy is fine, the problem is crosshair placement. "
                    "Keep your crosshair at head height at all times"
                ],
                ["crosshair_placement"],
            )
        else:
            findings.add(
                f"Low headshot accuracy ({_pct(stats, M.ACCURACY_HEAD)}, "
                f"aim for {tier.stats[M.ACCURACY_HEAD] * 100:.0f}%+)",
                [
                    "Play deathmatch with AK only, force yourself to tap/burst at head level. "
                    "Never spray at body"
                ],
                ["crosshair_placement"],
            )

    if not ok(M.COUNTER_STRAFING_GOOD_SHOTS_RATIO):
        findings.add(
            f"You're firing while still moving too often "
            f"({_pct(stats, M.COUNTER_STRAFING_GOOD_SHOTS_RATIO)} clean shots)",
            [
                "counter_strafing workshop map: only shoot when fully stopped, "
                "build the habit before worrying about speed"
            ],
            ["counter_strafing"],
        )

    if not ok(M.SPRAY_ACCURACY):
        findings.add(
            f"Spray control is weak ({_pct(stats, M.SPRAY_ACCURACY)} accuracy in sprays)",
            [
                "recoil master workshop: learn AK and M4 spray patterns, "
                "15 mins a day for 2 weeks will fix this"
            ],
            ["spray_control"],
        )

    if not ok(M.PREAIM):
        findings.add(
            f"Not pre-aiming common angles (preaim score: {_value(stats, M.PREAIM):.2f})",
            [
                "Deathmatch on your most played map: move crosshair to head height "
                "on every corner BEFORE you see anyone"
            ],
            ["crosshair_placement"],
        )

    if not ok(M.REACTION_TIME_MS):
        findings.add(
            f"Reaction time is slow ({_value(stats, M.REACTION_TIME_MS):.0f}ms avg, "
            f"aim for sub-{tier.stats[M.REACTION_TIME_MS]:.0f}ms)",
            [
                "aim_botz reflex training: 200 kills in reaction mode. "
                "Also check your monitor refresh rate and in-game sensitivity"
            ],
            ["reaction_time"],
        )

    wording = _absolute_wording(rating, tier.ratings.aim)
    return findings.build(f"Aim fundamentals are {wording} ({rating:g}/100)")


# ============================================================================
# Positioning
# ============================================================================


def analyze_positioning(
    stats: Mapping[Metric, float],
    rating: float,
    tier: BenchmarkTier = DEFAULT_TIER,
    weak_side: Side | None = None,
) -> ImprovementArea:
    findings = _Findings(Category.POSITIONING, rating)

    def ok(metric: Metric) -> bool:
        return meets_benchmark(_value(stats, metric), metric, tier=tier)

    if not ok(M.CT_OPENING_DUEL_SUCCESS_PERCENTAGE):
        pct = _pct(stats, M.CT_OPENING_DUEL_SUCCESS_PERCENTAGE)
        if weak_side is Side.CT:
            issue = f"Your CT side is your weak point: CT opening duels failing at {pct}"
            drills = [
                "Focus CT practice: play retake servers and learn 2 off-angles per site on your main maps",
                "Study CT positioning guides. Your aim isn't the problem, your angles are",
            ]
        else:
            issue = f"Losing CT opening duels too often ({pct} success)"
            drills = [
                "Play tighter angles on CT. Wide peeking on CT side is almost always wrong "
                "at non-pro level"
            ]
        drills.append(
            'Learn 2-3 "safe" spots per site per map that give you an angle advantage, '
            "not information"
        )
        findings.add(issue, drills, ["ct_angles", "ct_positioning"])

    if not ok(M.T_OPENING_DUEL_SUCCESS_PERCENTAGE):
        pct = _pct(stats, M.T_OPENING_DUEL_SUCCESS_PERCENTAGE)
        if weak_side is Side.T:
            issue = f"Your T side is your bottleneck: T opening duels failing at {pct}"
            drills = [
                "Practice T-side entry routes specifically. Pick one map and learn "
                "3 entry executes with utility",
                "Focus on T positioning fundamentals: you need better timing and utility support",
            ]
        else:
            issue = f"Losing T-side opening duels ({pct} success)"
            drills = [
                "Stop peeking without information. Use utility or teammates to take space, "
                "don't lone-wolf it"
            ]
        drills.append(
            "Learn when to shoulder peek vs full peek: shoulder peeking costs nothing and gives info"
        )
        findings.add(issue, drills, ["t_entry", "shoulder_peeking", "t_positioning"])

    if not ok(M.TRADED_DEATHS_SUCCESS_PERCENTAGE):
        findings.add(
            f"Not getting traded when you die "
            f"({_pct(stats, M.TRADED_DEATHS_SUCCESS_PERCENTAGE)} of deaths traded)",
            [
                "Communicate before peeking so teammates know where you're going and can trade you",
                "Don't peek alone deep into the map. Play closer to teammates so dying "
                "costs the enemy something",
            ],
            ["trade_positioning", "communication"],
        )

    wording = _absolute_wording(rating, tier.ratings.positioning)
    return findings.build(f"Positioning is {wording} ({rating:g}/100)")


# ============================================================================
# Utility
# ============================================================================


def analyze_utility(
    stats: Mapping[Metric, float],
    rating: float,
    tier: BenchmarkTier = DEFAULT_TIER,
    weak_side: Side | None = None,
) -> ImprovementArea:
    findings = _Findings(Category.UTILITY, rating)

    def ok(metric: Metric) -> bool:
        return meets_benchmark(_value(stats, metric), metric, tier=tier)

    if not ok(M.FLASHBANG_HIT_FRIEND_PER_FLASHBANG):
        findings.add(
            f"Teamflashing too much "
            f"({_value(stats, M.FLASHBANG_HIT_FRIEND_PER_FLASHBANG):.2f} teammates per flash)",
            [
                'Learn "pop flashes": these curve around corners and only blind enemies '
                "facing the angle",
                "Never throw a flash without knowing where your teammates are",
            ],
            ["pop_flashes"],
        )

    hit_rate_ok = ok(M.FLASHBANG_HIT_FOE_PER_FLASHBANG)
    if not hit_rate_ok:
        findings.add(
            f"Flashes aren't hitting enemies "
            f"({_value(stats, M.FLASHBANG_HIT_FOE_PER_FLASHBANG):.2f} enemies per flash)",
            [
                "Learn 2-3 flash lineups per site on your most played map. Random flashes do nothing",
                "Flash BEFORE peeking, not at the same time. Give the blind time to land first",
            ],
            ["pop_flashes", "flash_timing"],
        )

    if not ok(M.FLASHBANG_LEADING_TO_KILL):
        findings.add(
            f"Flashes rarely converting to kills "
            f"({_pct(stats, M.FLASHBANG_LEADING_TO_KILL)} conversion)",
            [
                "Coordinate flashes with a teammate: one flashes, one peeks immediately after",
                "Self-flash into site more on T-side rather than expecting someone else to flash for you",
            ],
            ["flash_timing"],
        )

    # Blind duration message depends on whether flashes reach enemies at all
    if not ok(M.FLASHBANG_HIT_FOE_AVG_DURATION):
        duration = _value(stats, M.FLASHBANG_HIT_FOE_AVG_DURATION)
        if hit_rate_ok:
            findings.add(
                f"Your flashes reach enemies but they dodge them quickly ({duration:.1f}s avg blind)",
                ["Switch from high-arc flashes to pop flashes. They give enemies less time to turn away"],
                ["pop_flashes"],
            )
        else:
            findings.add(
                f"Flashes only blind enemies for {duration:.1f}s avg "
                f"(aim for {tier.stats[M.FLASHBANG_HIT_FOE_AVG_DURATION]:.1f}s+)",
                ["Learn pop flashes that detonate around corners with no time to react"],
                ["pop_flashes"],
            )

    if not ok(M.FLASHBANG_THROWN):
        findings.add(
            f"Throwing very few flashes per round "
            f"({_value(stats, M.FLASHBANG_THROWN):.1f} avg, "
            f"aim for {tier.stats[M.FLASHBANG_THROWN]:.1f}+)",
            [
                "Buy flashes every round. At $200 they are the best utility in CS2, "
                "and two flashes beat one HE in most situations"
            ],
            ["flash_buying"],
        )

    if not ok(M.HE_FOES_DAMAGE_AVG):
        findings.add(
            f"HE grenades doing barely any damage "
            f"({_value(stats, M.HE_FOES_DAMAGE_AVG):.1f} avg damage to enemies)",
            [
                "Learn 1-2 HE lineups per map. Throwing HEs randomly is mostly a waste of money",
                "HEs work best on clustered enemies: save them for known spots (B apartments, etc)",
            ],
            ["he_grenades"],
        )

    if not ok(M.TRADE_KILLS_SUCCESS_PERCENTAGE):
        findings.add(
            f"Not converting trade kill opportunities "
            f"({_pct(stats, M.TRADE_KILLS_SUCCESS_PERCENTAGE)} success)",
            [
                "When a teammate gets killed, immediately check the angle they died from. "
                "That's your trade",
                "Don't panic spray from far away when trading. Get closer or use a different angle",
            ],
            ["trade_positioning"],
        )

    if not ok(M.UTILITY_ON_DEATH_AVG):
        findings.add(
            f"Dying with too many nades (avg {_value(stats, M.UTILITY_ON_DEATH_AVG):.0f} value on death)",
            [
                "Throw your nades earlier. If you have a smoke, throw it before the fight, not during",
                'Don\'t save utility for "the right moment", that moment often doesn\'t come',
            ],
            ["utility_timing"],
        )

    wording = _absolute_wording(rating, tier.ratings.utility)
    return findings.build(f"Utility usage is {wording} ({rating:g}/100)")


# ============================================================================
# Opening duels
# ============================================================================


def analyze_opening(
    stats: Mapping[Metric, float],
    rating: float,
    tier: BenchmarkTier = DEFAULT_TIER,
    weak_side: Side | None = None,
) -> ImprovementArea:
    findings = _Findings(Category.OPENING, rating)
    display = format_relative_rating(rating)

    ct_ok = meets_benchmark(
        _value(stats, M.CT_OPENING_AGGRESSION_SUCCESS_RATE),
        M.CT_OPENING_AGGRESSION_SUCCESS_RATE,
        tier=tier,
    )
    t_ok = meets_benchmark(
        _value(stats, M.T_OPENING_AGGRESSION_SUCCESS_RATE),
        M.T_OPENING_AGGRESSION_SUCCESS_RATE,
        tier=tier,
    )

    if not ct_ok:
        pct = _pct(stats, M.CT_OPENING_AGGRESSION_SUCCESS_RATE)
        if weak_side is Side.CT:
            issue = f"CT side is dragging you down: aggression failing at {pct}"
            drills = [
                "Stop pushing on CT entirely until your CT rating improves. "
                "Hold angles and play for retakes",
                "Master 2-3 defensive positions per site before attempting any aggression",
            ]
        else:
            issue = f"CT aggression isn't working ({pct} success when you push)"
            drills = [
                "On CT, only push aggressively when you have information. "
                "Random aggression loses rounds"
            ]
        drills.append("Play passive until you hear utility, then rotate with purpose")
        findings.add(issue, drills, ["ct_angles", "ct_positioning"])

    if not t_ok:
        pct = _pct(stats, M.T_OPENING_AGGRESSION_SUCCESS_RATE)
        if weak_side is Side.T:
            issue = f"T side is your bottleneck: entry attempts failing at {pct}"
            drills = [
                "Practice T-side entry routes specifically. Pick one map and learn "
                "3 entry executes with utility",
                "Focus on T-side fundamentals: utility timing and team coordination",
            ]
        else:
            issue = f"T-side entries are failing ({pct} success)"
            drills = [
                "Never dry peek important angles. Always use a flash, smoke, or HE to take space"
            ]
        drills.append(
            "Watch pro T-side demos on your map pool and notice how much utility "
            "they throw before peeking"
        )
        findings.add(issue, drills, ["t_entry", "demo_review", "t_positioning"])

    benchmark = tier.ratings.opening
    if rating < -10.0:
        findings.add(
            f"Opening rating is extremely low ({display}). "
            "This may indicate you rarely take opening duels",
            ["Focus on fundamentals first (aim, positioning, utility) before worrying about entry fragging"],
            [],
        )
    elif ct_ok and t_ok and rating < benchmark:
        wording = _relative_wording(rating, benchmark, "below average")
        if rating - benchmark < -5:
            wording = "poor"
        findings.add(
            f"Opening rating is {wording} ({display}) but individual duel success is ok. "
            "You may be taking too few opening duels",
            [
                "Step up as entry fragger more: if you win duels when you peek, "
                "peek more often with utility support"
            ],
            ["entry_fragger"],
        )

    wording = _relative_wording(rating, benchmark, "below average")
    return findings.build(f"Opening performance is {wording} ({display})")


# ============================================================================
# Clutch
# ============================================================================


def analyze_clutch(
    stats: Mapping[Metric, float],
    rating: float,
    tier: BenchmarkTier = DEFAULT_TIER,
    weak_side: Side | None = None,
) -> ImprovementArea:
    findings = _Findings(Category.CLUTCH, rating)
    display = format_relative_rating(rating)
    benchmark = tier.ratings.clutch

    # No clutch sub-stats exist, so severity comes from the rating alone
    if rating < -10.0:
        findings.add(
            f"Clutch rating is extremely low ({display}). "
            "This suggests very few clutch attempts or poor performance",
            [
                "Focus on staying alive longer and getting into more clutch situations "
                "through better positioning"
            ],
            ["clutch_fundamentals"],
        )
    elif rating < -6.0:
        findings.add(
            f"Clutch rating is very low ({display}): losing most 1vX situations badly",
            [
                "In clutches, stop and think before moving. Map out where enemies could be "
                "and make a plan",
                "Use sound: listen for footsteps and utility before peeking, "
                "time is usually on your side",
                "1v1 clutch tip: fake a site, listen for rotate, retake original site",
            ],
            ["clutch_fundamentals", "1v1_clutch"],
        )
    elif rating < benchmark:
        difference = rating - benchmark
        if difference >= -2:
            wording = "slightly below average"
        elif difference >= -5:
            wording = "below average"
        else:
            wording = "poor"
        findings.add(
            f"Clutch performance is {wording} ({display}), room for improvement",
            [
                "Learn to use the bomb timer: a planted bomb forces enemies to commit, "
                "buying you time",
                "Practice staying calm in 1vX scenarios. The mental pressure is often "
                "the main barrier",
            ],
            ["clutch_fundamentals"],
        )

    if not meets_benchmark(_value(stats, M.UTILITY_ON_DEATH_AVG), M.UTILITY_ON_DEATH_AVG, tier=tier):
        findings.add(
            "Dying with utility in clutch situations wastes potential",
            ["In a clutch, throw remaining utility before peeking. A HE or flash costs nothing now"],
            ["clutch_utility"],
        )

    wording = _relative_wording(rating, benchmark, "above average")
    return findings.build(f"Clutch performance is {wording} ({display})")


ANALYZERS = {
    Category.AIM: analyze_aim,
    Category.POSITIONING: analyze_positioning,
    Category.UTILITY: analyze_utility,
    Category.OPENING: analyze_opening,
    Category.CLUTCH: analyze_clutch,
}
