"""
Battle stage: pairwise comparisons between candidates.

Modules
-------
recorder   : record_battle_result(): applies one outcome to the pool.
tournament : BATTLE_ROUNDS + advance_tournament() + pick_battle_pair():
             round sequencing and the hand-off to the final ranking.
"""
