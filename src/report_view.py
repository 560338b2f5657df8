"""
Presentation helpers for franchise reports: bands, seals, verdicts and card state.

Everything here is pure so the Streamlit app only has to lay things out.
"""

from utils import TMDB_MOVIE_PAGE, parse_release_date

# Score bands (percent)
CLASSIC = 80.0
GREAT = 70.0
DECENT = 65.0
POOR = 50.0

FIRST_FILM_BOOST = 2.0
LONG_GAP_DAYS = 3652

THEORY_BEAT = "beat"
THEORY_MATCH_GOOD = "match_good"
THEORY_MATCH_BAD = "match_bad"

THEORY_SEALS = {
    THEORY_BEAT: ("🏆", "Beats the theory"),
    THEORY_MATCH_GOOD: ("✅", "Matches (good)"),
    THEORY_MATCH_BAD: ("🚫", "Matches (bad)"),
}

THEORY_GROUP_TITLES = {
    THEORY_BEAT: "Beat the theory",
    THEORY_MATCH_GOOD: "Match the theory (good)",
    THEORY_MATCH_BAD: "Match the theory (bad)",
}


def simplify_name(name):
    """Drop a trailing ' Collection' from a TMDb collection name."""
    if not name or not name.strip():
        return name
    text = name.strip()
    if text.lower().endswith(" collection"):
        return text[:-len(" collection")].rstrip()
    return text


def score_band(score):
    if score is None:
        return "unknown"
    if score >= CLASSIC:
        return "classic"
    if score >= GREAT:
        return "great"
    if score >= DECENT:
        return "decent"
    if score >= POOR:
        return "poor"
    return "bad"


def boosted_scores(scores, floor):
    """
    Copy of scores with a small lift for the first film.

    The first film gets +2 (capped at 100) only when no later film reaches `floor`.
    """
    adjusted = list(scores)
    if not adjusted or adjusted[0] is None:
        return adjusted
    if any(s is not None and s >= floor for s in adjusted[1:]):
        return adjusted
    adjusted[0] = min(100.0, adjusted[0] + FIRST_FILM_BOOST)
    return adjusted


def theory_category(scores):
    """
    Strict grouping of a franchise against the "sequels get worse" theory.

    Every released film has to be at least GREAT (after the first-film
    boost) to avoid the bad group; four or more such films beat the theory.
    """
    if not scores:
        return THEORY_MATCH_BAD
    adjusted = boosted_scores(scores, GREAT)
    if all(s is not None and s >= GREAT for s in adjusted):
        return THEORY_BEAT if len(scores) >= 4 else THEORY_MATCH_GOOD
    return THEORY_MATCH_BAD


def in_streak(index, run):
    if run is None or run.streak_start is None or run.streak_end is None:
        return False
    return run.streak_start <= index <= run.streak_end


def card_colour_scores(scores):
    """Scores used to grey out cards; the first film is lifted unless a sequel is DECENT."""
    return boosted_scores(scores, DECENT)


def card_state(index, run, colour_scores):
    """How a film's poster card should be decorated."""
    score = colour_scores[index] if index < len(colour_scores) else None
    return {
        "is_peak": run is not None and run.peak_index == index,
        "in_streak": in_streak(index, run),
        "greyed_out": not (score is not None and score >= DECENT),
    }


def ones_to_watch(film_count, run):
    """Indices to recommend: the best streak, else the peak alone."""
    if run is None or film_count == 0:
        return []
    start, end = run.streak_start, run.streak_end
    if start is not None and end is not None and 0 <= start <= end < film_count:
        return list(range(start, end + 1))
    if run.peak_index is not None and 0 <= run.peak_index < film_count:
        return [run.peak_index]
    return []


def shows_complete_set(film_count, watch):
    """False when the recommended films already are every film, in order."""
    return watch != list(range(film_count))


def _has_long_gap(sequence, upcoming, good):
    dates = sorted(m.release_date for m in sequence if m.release_date is not None)
    if not dates:
        return False
    upcoming_dates = sorted(d for d in (parse_release_date(u.release_date) for u in upcoming or []) if d)
    if upcoming_dates and (upcoming_dates[0] - dates[-1]).days >= LONG_GAP_DAYS:
        return True
    for i in range(1, len(sequence)):
        prev, cur = sequence[i - 1].release_date, sequence[i].release_date
        if prev and cur and (cur - prev).days >= LONG_GAP_DAYS and i not in good:
            return True
    return False


def one_line_verdict(sequence, scores, run, upcoming=None):
    """
    Summarise a franchise in a single sentence.

    Args:
        sequence: Ordered released films
        scores: Fused scores aligned with `sequence`
        run: RunResult for the franchise (or None)
        upcoming: Unreleased MemberRows of the franchise

    Returns:
        String verdict
    """
    total = len(sequence)
    if total == 0:
        return "No released films yet."

    good = set(run.good_indices) if run else set()
    good_count = len(good)
    streak_len = run.streak_length if run else 0
    peak = run.peak_index if run else None

    if good_count == 0:
        return "These movies were never good."

    if _has_long_gap(sequence, upcoming, good):
        return "They just couldn't leave a beloved franchise alone."

    streak = ones_to_watch(total, run) if run and run.streak_start is not None else []
    streak_scores = [scores[i] for i in streak if scores[i] is not None]
    if streak_scores:
        if max(streak_scores) < CLASSIC or sum(streak_scores) / len(streak_scores) < 75.0:
            return "No classics but a decent set of movies."

    if good_count == total:
        return "A strong set of movies. Perfect." if total <= 3 else "A strong set that stayed good beyond a trilogy."

    if good_count == 1 and total >= 3:
        if 0 in good:
            return "None of them are great, maybe just watch the first."
        return "One decent entry in an otherwise weak series."

    if (run.streak_start == 0 and streak_len >= 2 and run.streak_end is not None
            and total - (run.streak_end + 1) >= max(2, total // 3)):
        return "A great franchise they have driven into the ground."

    if peak is not None and peak <= max(1, total // 3) and run.streak_end is not None and run.streak_end < total - 1:
        return "A good set of movies that got worse over time."

    if peak is not None and peak >= total - max(1, total // 3):
        bad_before = sum(1 for i in range(peak) if i not in good)
        if bad_before >= max(1, total // 4):
            return "A strong set of movies that only got better over time."

    if total > 3 and (streak_len <= 1 or good_count <= total // 2):
        return "A franchise that went on too long with the occasional decent movie."

    return "A solid run with a few bumps."


def format_release(release_date, missing="—"):
    return release_date.strftime("%d %b %Y") if release_date else missing


def ranked_table(sequence, scores):
    """
    Best-to-worst rows for the ranked table.

    Known scores first, by rounded score descending, then IMDb votes, then
    series order.
    """
    entries = []
    for i, (movie, score) in enumerate(zip(sequence, scores)):
        entries.append((
            score is None,
            -round(score, 2) if score is not None else 0.0,
            -(movie.imdb_votes or 0),
            i,
            movie,
            score,
        ))
    entries.sort(key=lambda e: e[:4])

    rows = []
    for rank, (_, _, _, _, movie, score) in enumerate(entries, start=1):
        rows.append({
            "Rank": rank,
            "Title": movie.title,
            "Release": format_release(movie.release_date),
            "Rating": f"{round(score):.0f}%" if score is not None else "—",
            "Link": TMDB_MOVIE_PAGE.format(tmdb_id=movie.tmdb_id),
        })
    return rows
