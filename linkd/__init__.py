"""linkd: conversational lead-finding agent core.

Routes each user turn, searches the web for named professionals at a target
company, and resolves verified email addresses once the user confirms.
"""

__version__ = "0.1.0"
