"""
GeoPulse - AI Visibility Scoring Core

Tracks how visible a website is in AI-generated answers and recommends
the single highest-leverage next action:

- scoring: momentum score (0-100) from citations and trust sources
- recommendations: priority-ordered next-action selector
- tracking: visibility snapshots, improvements and proof reports
"""

__version__ = "0.4.0"
