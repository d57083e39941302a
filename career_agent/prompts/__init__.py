"""Prompt templates for LLM interactions.

Each module holds the system/user prompt pair and builder function for one
agent. Builders sanitize every embedded value with sanitize_llm_input().

Modules:
    orchestrator: Intent classification
    ats_assessment: CV assessment
    cover_letter: Cover letter generation and revision
    job_matching: Job match scoring
    application_tracking: Application status extraction
"""
