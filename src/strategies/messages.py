"""Prompt message builders for code analysis.

The system message is assembled from four parts:
1. Expert preamble
2. Role content for the analysis type
3. Optional language context
4. Requested response structure

The user message carries the code (or requirements) with a short intro.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.schemas.analysis import AnalysisType


ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


# =============================================================================
# System Message Content
# =============================================================================

EXPERT_PREAMBLE = (
    "You are an expert software developer and code analyst with deep knowledge of "
    "multiple programming languages. Your role is to provide professional, accurate, "
    "and educational code analysis. Always be helpful, clear, and thorough in your "
    "explanations. Use proper technical terminology while remaining accessible to "
    "developers of all levels."
)

DEFAULT_ROLE_CONTENT = "You are an expert code analyst providing professional code analysis."

ROLE_CONTENT: dict[AnalysisType, str] = {
    AnalysisType.WRITE_CODE: (
        "You are an expert code generator specializing in creating high-quality, "
        "functional code based on user requirements. Your goal is to write clean, "
        "efficient, and well-documented code that meets the specified requirements. "
        "Focus on best practices, proper error handling, and maintainable code structure."
    ),
    AnalysisType.DEBUG: (
        "You are an expert debugging specialist with deep knowledge of common "
        "programming errors and issues. Your role is to identify potential problems, "
        "suggest fixes, and explain why issues occur. Be thorough in your analysis and "
        "provide actionable solutions."
    ),
    AnalysisType.REFACTOR: (
        "You are an expert code refactoring specialist focused on improving code "
        "quality, readability, and maintainability. Your goal is to suggest "
        "improvements while preserving functionality. Focus on clean code principles, "
        "performance, and best practices."
    ),
    AnalysisType.ANALYZE: (
        "You are an expert code analyst providing comprehensive code reviews. Your role "
        "is to analyze code from multiple perspectives including functionality, "
        "performance, security, and maintainability. Provide detailed insights and "
        "actionable recommendations."
    ),
    AnalysisType.FOLLOWUP: (
        "You are a helpful AI programming assistant in an ongoing conversation. This is "
        "a follow-up question that builds on our previous discussion. Please provide a "
        "conversational and helpful response that continues the conversation naturally. "
        "If the question is about code, provide code examples. If it's about explaining "
        "concepts, provide clear explanations. If it's about improving or modifying "
        "code, provide the improved code with explanations."
    ),
}

LANGUAGE_CONTEXT: dict[str, str] = {
    "java": (
        "This is Java code. Consider Java-specific patterns, conventions, and best practices."
    ),
    "python": (
        "This is Python code. Consider Python-specific patterns, PEP guidelines, "
        "and best practices."
    ),
    "javascript": (
        "This is JavaScript code. Consider JavaScript-specific patterns, ES6+ features, "
        "and best practices."
    ),
    "cpp": (
        "This is C++ code. Consider C++-specific patterns, memory management, "
        "and best practices."
    ),
}
LANGUAGE_CONTEXT["js"] = LANGUAGE_CONTEXT["javascript"]
LANGUAGE_CONTEXT["c++"] = LANGUAGE_CONTEXT["cpp"]

DEFAULT_RESPONSE_STRUCTURE = "Provide a comprehensive analysis of the code."

RESPONSE_STRUCTURE: dict[AnalysisType, str] = {
    AnalysisType.WRITE_CODE: (
        "Structure your response with:\n"
        "- Requirements Analysis: Summary of what the user requested\n"
        "- Generated Code: Complete, functional code that meets the requirements\n"
        "- Code Explanation: Brief explanation of how the code works\n"
        "- Usage Instructions: How to use or implement the generated code\n"
        "- Additional Notes: Any important considerations or alternatives"
    ),
    AnalysisType.DEBUG: (
        "Structure your response with:\n"
        "- Issues Found: List of potential problems identified\n"
        "- Root Causes: Explanation of why these issues occur\n"
        "- Solutions: Specific fixes and improvements\n"
        "- Prevention: How to avoid similar issues in the future"
    ),
    AnalysisType.REFACTOR: (
        "Structure your response with:\n"
        "- Current Issues: Problems with the current code\n"
        "- Suggested Improvements: Specific refactoring recommendations\n"
        "- Benefits: Why these changes improve the code\n"
        "- Implementation: How to apply the suggested changes"
    ),
    AnalysisType.ANALYZE: (
        "Structure your response with:\n"
        "- Code Overview: Summary of functionality and purpose\n"
        "- Strengths: What the code does well\n"
        "- Areas for Improvement: Specific suggestions for enhancement\n"
        "- Security Considerations: Potential security implications\n"
        "- Performance Analysis: Efficiency considerations\n"
        "- Best Practices: Recommendations for better code quality"
    ),
}


# =============================================================================
# User Message Content
# =============================================================================

DEFAULT_USER_INTRO = "Please analyze the following code professionally"

USER_INTRO: dict[AnalysisType, str] = {
    AnalysisType.WRITE_CODE: (
        "Please generate code based on the following requirements and specifications"
    ),
    AnalysisType.DEBUG: (
        "Please analyze the following code for potential bugs, issues, or areas of concern"
    ),
    AnalysisType.REFACTOR: (
        "Please analyze the following code for refactoring opportunities to improve "
        "code quality and maintainability"
    ),
    AnalysisType.ANALYZE: (
        "Please analyze the following code comprehensively including functionality, "
        "performance, security, and maintainability"
    ),
}


def language_context(language: str | None) -> str | None:
    """Language-specific guidance, or None for languages without any."""
    if not language:
        return None
    return LANGUAGE_CONTEXT.get(language.strip().lower())


def build_system_content(analysis_type: AnalysisType, language: str | None) -> str:
    """Assemble the system prompt for an analysis type and language."""
    parts = [
        EXPERT_PREAMBLE + "\n\n",
        ROLE_CONTENT.get(analysis_type, DEFAULT_ROLE_CONTENT) + "\n\n",
    ]
    context = language_context(language)
    if context:
        parts.append(context + "\n\n")
    parts.append(RESPONSE_STRUCTURE.get(analysis_type, DEFAULT_RESPONSE_STRUCTURE))
    return "".join(parts)


def build_user_content(code: str, analysis_type: AnalysisType, language: str) -> str:
    """Assemble the user prompt wrapping the submitted code or requirements."""
    intro = USER_INTRO.get(analysis_type, DEFAULT_USER_INTRO)
    if analysis_type == AnalysisType.WRITE_CODE:
        body = f"Requirements:\n{code}\n\nPlease generate the code in {language}."
    else:
        body = f"```{language}\n{code}\n```"
    return f"{intro}:\n\n{body}"


# =============================================================================
# Message Types
# =============================================================================


@dataclass(frozen=True)
class SystemMessage:
    """System prompt for one analysis request."""

    content: str
    analysis_type: AnalysisType | None = None
    language: str | None = None

    @classmethod
    def for_analysis(cls, analysis_type: AnalysisType, language: str | None) -> SystemMessage:
        return cls(build_system_content(analysis_type, language), analysis_type, language)

    def to_dict(self) -> dict[str, str]:
        return {"role": ROLE_SYSTEM, "content": self.content}


@dataclass(frozen=True)
class UserMessage:
    """User prompt for one analysis request."""

    content: str
    code: str | None = None
    analysis_type: AnalysisType | None = None
    language: str | None = None

    @classmethod
    def for_analysis(
        cls, code: str, analysis_type: AnalysisType, language: str
    ) -> UserMessage:
        return cls(
            build_user_content(code, analysis_type, language), code, analysis_type, language
        )

    def to_dict(self) -> dict[str, str]:
        return {"role": ROLE_USER, "content": self.content}


@dataclass(frozen=True)
class MessagePair:
    """System and user message sent together to a chat provider."""

    system: SystemMessage
    user: UserMessage

    def to_chat_messages(self) -> list[dict[str, str]]:
        return [self.system.to_dict(), self.user.to_dict()]
