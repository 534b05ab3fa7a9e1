"""
AgentFlow - a workflow execution engine for AI, Slack and Notion automations.
"""

__version__ = "0.1.0"
