"""
Dataset loading: member catalog and survey questions from JSON files.

Modules
-------
loader : load_members() + load_questions() + normalize_question_scores()
         + write_questions().
"""
