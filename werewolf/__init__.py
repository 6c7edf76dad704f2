"""
Werewolf: a rules engine for the Werewolf/Mafia social-deduction game.
"""

__version__ = "0.1.0"
