"""
YAML prompt invoker package.

Provides:
- YAML prompt templates with declared input variables and defaults
- Argument binding and rendering with typed errors
- An Azure OpenAI chat-completions client
- A console demo driving both together
"""
