"""
quizstate: learner progress state that works offline and syncs when signed in.

Subpackages:
- sync: dual-source synchronized stores, auth observer, storage adapters
- taxonomy: classification codes and the hierarchical code matcher
- review: review priority scheduler and wrong-answer notes
- study: quiz engine, missions, stats and the wired StudyState
- cli: Typer command line
"""

__version__ = "1.0.0"
