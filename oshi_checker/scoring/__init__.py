"""
Scoring engine: survey accumulation, artist affinity, candidate selection
and the final composite ranking.

Modules
-------
accumulator : accumulate_scores() + apply_answer(): survey delta merging.
artist      : ArtistScore + compute_artist_score(): capped top-3 sub-score.
candidates  : compute_member_survey_score() + select_candidates(): pool
              construction from the member catalog.
ranking     : RankingWeights + RankedCandidate + calculate_final_ranking().

All functions are pure: no I/O, no mutation of their inputs.
"""
