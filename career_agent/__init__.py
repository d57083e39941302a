"""Career assistant agent core.

Routes free-text user requests to specialized handlers (CV assessment, job
matching, cover letters, application tracking) over shared conversation state.
"""
