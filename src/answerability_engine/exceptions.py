"""Custom exception hierarchy for the answerability engine."""


class AnswerabilityEngineError(Exception):
    """Base exception for all answerability engine errors."""


class ConfigurationError(AnswerabilityEngineError):
    """Error in ranking or guardrail configuration."""
