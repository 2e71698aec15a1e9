"""Custom styling for questionary prompts.

This module provides a consistent style for the interactive confirmations
and onboarding questions.
"""

from questionary import Style

# ANSI 256 colors, matching the rich console theme
PROMPT_STYLE = Style(
    [
        ("qmark", "fg:#5fafff bold"),  # Blue question mark
        ("question", "bold"),  # Bold question text
        ("answer", "fg:#5fd7ff bold"),  # Cyan submitted answer
        ("pointer", "fg:#5fd7ff bold"),  # Cyan pointer for selections
        ("highlighted", "fg:#1c1c1c bg:#5fd7ff bold"),  # Dark text on cyan background
        ("instruction", "fg:#6c6c6c italic"),  # Gray italic instructions
        ("text", ""),  # Default text
        ("validation-toolbar", "fg:#ff5f5f bold"),  # Red validation errors
    ]
)

# Icon prefix for prompts
QMARK = "? "
