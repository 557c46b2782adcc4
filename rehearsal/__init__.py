"""
Interview Rehearsal - timed interview practice with rule-based feedback

Runs practice sessions, scores each answer along several quality
dimensions, tracks progress across sessions and keeps a daily
practice streak with scheduled reminders.
"""

__version__ = "0.1.0"
__author__ = "Interview Rehearsal Team"
