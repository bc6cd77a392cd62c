"""
Advice Engine
=============
Rule matching and concept resolution for targeted real-estate advice.

Features:
- Concept registry with aliases and value normalization
- Field discovery from tenant-defined conversational flows
- Concept-addressed and field-addressed boolean rule trees
- Recursive weighted rule evaluation over collected answers
- Advice filtering and ranking
- RESTful API with FastAPI

Usage:
    from advice_engine import run
    run()

Or from command line:
    python main.py

Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "Advice Engine Team"

from api.main import app, run

__all__ = ["app", "run", "__version__"]
