"""
Franchise Falloff - Streamlit report viewer
Browse where each film franchise peaked, fell off, and which films to watch
"""

import streamlit as st
import sys
import os

# =============================================================================
# APP CONFIGURATION
# =============================================================================

APP_TITLE = "Do Sequels Get Worse?"
DEFAULT_OUTPUT_DIR = "out"
CARDS_PER_ROW = 5

# =============================================================================
# IMPORTS AND SETUP
# =============================================================================

# Add src directory to path for imports
current_dir = os.path.dirname(os.path.abspath(__file__))
src_dir = os.path.join(current_dir, 'src')

if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from franchise_detection import exclude_future_releases, join_ratings, upcoming_by_franchise
from models import AnalysisConfig, ConfigurationError
from persistence import load_members, load_movie_ratings, load_runs, output_paths
from report_view import (
    THEORY_GROUP_TITLES, THEORY_SEALS, card_colour_scores, card_state, format_release, ones_to_watch,
    one_line_verdict, ranked_table, score_band, shows_complete_set, simplify_name, theory_category
)
from run_summary import analyze_franchise, group_by_franchise
from score_fusion import FusionPolicy
from utils import DEFAULT_ANALYSIS_SETTINGS, poster_url

# =============================================================================
# SESSION STATE MANAGEMENT
# =============================================================================

def initialize_session_state():
    """Initialize all required session state variables."""

    if "output_dir" not in st.session_state:
        st.session_state.output_dir = DEFAULT_OUTPUT_DIR

    if "selected_franchise" not in st.session_state:
        st.session_state.selected_franchise = None

    # Loaded CSVs keyed by output directory
    if "data_cache" not in st.session_state:
        st.session_state.data_cache = {}

# =============================================================================
# UI STYLING
# =============================================================================

def inject_custom_css():
    """Inject custom CSS for the poster cards."""
    st.markdown("""
    <style>
    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}

    .app-title {
        text-align: center;
        font-size: 2.5rem;
        font-weight: bold;
        margin-bottom: 1rem;
        color: #e50914;
    }

    .verdict {
        font-style: italic;
        font-size: 1.1rem;
        color: #555;
        margin-bottom: 1rem;
    }

    .card-badge {
        font-size: 0.8rem;
        font-weight: bold;
        color: #333;
    }

    .greyed-out img {
        filter: grayscale(100%);
        opacity: 0.5;
    }

    .band-classic { color: #1b873f; }
    .band-great { color: #2e7d32; }
    .band-decent { color: #b28704; }
    .band-poor { color: #d84315; }
    .band-bad { color: #b71c1c; }
    .band-unknown { color: #888; }
    </style>
    """, unsafe_allow_html=True)

# =============================================================================
# DATA LOADING
# =============================================================================

def load_report_data(output_dir):
    """
    Load members and ratings written by the pipeline.

    Returns:
        Dictionary with released films, every member and saved runs, or None
    """
    cache = st.session_state.data_cache
    if output_dir in cache:
        return cache[output_dir]

    paths = output_paths(output_dir)
    if not os.path.exists(paths["members"]):
        return None

    all_members = load_members(paths["members"])
    released, _ = exclude_future_releases(all_members)
    ratings = load_movie_ratings(paths["ratings"]) if os.path.exists(paths["ratings"]) else []
    saved_runs = load_runs(paths["runs"]) if os.path.exists(paths["runs"]) else []

    data = {
        "all_members": all_members,
        "movies": join_ratings(released, ratings),
        "saved_runs": saved_runs,
    }
    cache[output_dir] = data
    return data


def analyze_all(movies, config, min_movies):
    """Analyse every franchise with at least `min_movies` released films."""
    reports = []
    for (collection_id, collection_name), group in group_by_franchise(movies).items():
        if len(group) < min_movies:
            continue
        run, sequence, scores = analyze_franchise(collection_id, collection_name, group, config)
        reports.append({"run": run, "sequence": sequence, "scores": scores})
    return reports

# =============================================================================
# SIDEBAR
# =============================================================================

def render_sidebar():
    """Analysis knobs; returns (AnalysisConfig, min_movies)."""
    d = DEFAULT_ANALYSIS_SETTINGS
    with st.sidebar:
        st.markdown("### ⚙️ Analysis")
        st.session_state.output_dir = st.text_input("Output folder", st.session_state.output_dir)
        if st.button("🔄 Reload CSVs"):
            st.session_state.data_cache = {}

        policy = st.selectbox("Rating source", FusionPolicy.names(),
                              index=FusionPolicy.names().index(FusionPolicy.AUTO.value))
        min_votes = st.number_input("Min IMDb votes", min_value=0, value=d["min_votes_gate"], step=500)
        blend = st.slider("Blend weight", 0.0, 1.0, float(d["blend_weight"]), 0.05)

        st.markdown("### 📉 Fall detection")
        adj = st.number_input("Adjacent drop", value=float(d["adj_drop"]))
        cum = st.number_input("Drop from peak", value=float(d["cum_drop"]))
        window = st.number_input("Window size", min_value=1, value=d["window_size"])
        window_thresh = st.number_input("Window average below", value=float(d["window_avg_thresh"]))

        st.markdown("### 🎯 Best streak")
        good = st.number_input("Good threshold", value=float(d["good_threshold"]))
        grace = st.number_input("First-film grace", value=float(d["origin_grace"]))
        min_streak = st.number_input("Min streak length", min_value=1, value=d["min_streak_length"])
        prefer_origin = st.checkbox("Prefer streaks with the first film", value=True)

        min_movies = st.number_input("Min released films", min_value=1, value=2)

    config = AnalysisConfig(
        fusion_policy=FusionPolicy.from_name(policy),
        min_votes_gate=int(min_votes),
        blend_weight=blend,
        adj_drop=adj,
        cum_drop=cum,
        window_size=int(window),
        window_avg_thresh=window_thresh,
        good_threshold=good,
        origin_grace=grace,
        min_streak_length=int(min_streak),
        origin_bias_amount=d["origin_bias_amount"] if prefer_origin else 0.0,
    )
    return config, int(min_movies)

# =============================================================================
# INDEX PAGE
# =============================================================================

def render_index(reports, saved_runs):
    """Franchises grouped by how they fare against the theory."""
    groups = {key: [] for key in THEORY_GROUP_TITLES}
    for report in reports:
        groups[theory_category(report["scores"])].append(report)

    for key, title in THEORY_GROUP_TITLES.items():
        icon, _ = THEORY_SEALS[key]
        members = sorted(groups[key], key=lambda r: simplify_name(r["run"].collection_name) or "")
        st.markdown(f"### {icon} {title} ({len(members)})")
        if not members:
            st.markdown("_None_")
            continue

        cols = st.columns(3)
        for i, report in enumerate(members):
            run = report["run"]
            with cols[i % 3]:
                label = f"{simplify_name(run.collection_name)} · {run.film_count} films"
                if st.button(label, key=f"open_{run.collection_id}"):
                    st.session_state.selected_franchise = run.collection_id
                    st.rerun()

    if saved_runs:
        with st.expander(f"📄 Saved pipeline runs ({len(saved_runs)})"):
            st.dataframe([{
                "Franchise": r.collection_name,
                "Films": r.film_count,
                "Good run": r.good_run_length,
                "Peak": r.peak_title,
                "Fall": r.fall_title,
                "Cliff": r.cliff_drop,
                "Streak": r.streak_length,
                "Streak avg": r.streak_avg,
                "Missing": "yes" if r.has_missing_ratings else "",
            } for r in saved_runs], use_container_width=True)

# =============================================================================
# FRANCHISE PAGE
# =============================================================================

def render_card(movie, score, state):
    """Render one poster card with its peak/streak decorations."""
    url = poster_url(movie.poster_path)
    css = "greyed-out" if state["greyed_out"] else ""
    if url:
        st.markdown(f'<div class="{css}"><img src="{url}" style="width:100%;border-radius:8px;"></div>',
                    unsafe_allow_html=True)
    else:
        st.markdown(
            '<div style="background-color: #ddd; height: 240px; display: flex; align-items: center; '
            'justify-content: center; border-radius: 8px; color: #666;">🎬<br>No Poster</div>',
            unsafe_allow_html=True
        )

    badges = []
    if state["is_peak"]:
        badges.append("👑 Peak")
    if state["in_streak"]:
        badges.append("🔥 Streak")
    if badges:
        st.markdown(f'<span class="card-badge">{" · ".join(badges)}</span>', unsafe_allow_html=True)

    band = score_band(score)
    rating = f"{round(score):.0f}%" if score is not None else "—"
    st.markdown(f"**{movie.title}**  \n{format_release(movie.release_date)} · "
                f'<span class="band-{band}">{rating}</span>', unsafe_allow_html=True)


def render_card_row(indices, sequence, scores, run, colour_scores):
    for start in range(0, len(indices), CARDS_PER_ROW):
        cols = st.columns(CARDS_PER_ROW)
        for col, i in zip(cols, indices[start:start + CARDS_PER_ROW]):
            with col:
                render_card(sequence[i], scores[i], card_state(i, run, colour_scores))


def render_franchise(report, upcoming):
    run, sequence, scores = report["run"], report["sequence"], report["scores"]
    icon, label = THEORY_SEALS[theory_category(scores)]

    if st.button("← All franchises"):
        st.session_state.selected_franchise = None
        st.rerun()

    st.markdown(f"## {simplify_name(run.collection_name)}")
    st.markdown(f"{icon} **{label}**")
    st.markdown(f'<p class="verdict">{one_line_verdict(sequence, scores, run, upcoming)}</p>',
                unsafe_allow_html=True)

    if run.has_missing_ratings:
        st.warning("⚠️ Some films have no usable rating; they never count as good.")

    colour_scores = card_colour_scores(scores)

    watch = ones_to_watch(len(sequence), run)
    st.markdown("### 🍿 Ones to watch")
    if watch:
        render_card_row(watch, sequence, scores, run, colour_scores)
    else:
        st.markdown("_Nothing here is worth your evening._")

    if shows_complete_set(len(sequence), watch):
        st.markdown("### 🎞️ The complete set")
        render_card_row(list(range(len(sequence))), sequence, scores, run, colour_scores)

    if upcoming:
        st.markdown("### 🗓️ Coming soon")
        for m in upcoming:
            st.markdown(f"- **{m.title}** ({m.release_date or 'TBA'})")

    st.markdown("### 📊 Ranked")
    st.dataframe(ranked_table(sequence, scores), use_container_width=True, hide_index=True)

# =============================================================================
# MAIN APPLICATION
# =============================================================================

def main():
    """Main application function."""
    st.set_page_config(
        page_title=APP_TITLE,
        page_icon="🎬",
        layout="wide",
        initial_sidebar_state="expanded"
    )

    initialize_session_state()
    inject_custom_css()

    st.markdown(f'<h1 class="app-title">🎬 {APP_TITLE}</h1>', unsafe_allow_html=True)

    config, min_movies = render_sidebar()
    try:
        config.validate()
    except ConfigurationError as e:
        st.error(f"❌ Invalid setting {e.parameter}: {e}")
        return

    data = load_report_data(st.session_state.output_dir)
    if data is None:
        st.warning(f"No franchise data in '{st.session_state.output_dir}'. Run `python build_reports.py` first.")
        return

    with st.spinner("📉 Analysing franchises..."):
        reports = analyze_all(data["movies"], config, min_movies)

    if not reports:
        st.warning("No franchise has enough released films with these settings.")
        return

    selected = st.session_state.selected_franchise
    report = next((r for r in reports if r["run"].collection_id == selected), None)
    if report is None:
        render_index(reports, data["saved_runs"])
        return

    released_ids = {m.tmdb_id for m in data["movies"]}
    upcoming = upcoming_by_franchise(data["all_members"], released_ids).get(selected, [])
    render_franchise(report, upcoming)


if __name__ == "__main__":
    main()
