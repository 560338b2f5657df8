"""
Franchise Falloff - Source Package

Finds where film franchises peak, where they fall off, and their best run of good films:
- score_fusion: Combine critic, audience, IMDb and TMDb ratings into one score
- run_analysis: Peak and fall-off detection over an ordered sequence
- streak_selection: Best contiguous run of good films
- run_summary: Per-franchise summaries and the analysis entry points
- franchise_detection: Franchise scoring, filtering and ratings join
- tmdb_client / omdb_client: Data acquisition from TMDb and OMDb
- persistence: CSV files written and read by the pipeline
- report_view: Presentation helpers for the Streamlit viewer
- pipeline: Command-line entry point
- models / utils: Shared records, configuration constants and helpers
"""
