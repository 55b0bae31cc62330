"""
Command interpretation and dialogue-state engine.

Components:
- matcher.py: similarity scoring of a free-text query against task titles
- intent.py: utterance -> ParsedIntent (pluggable parser, keyword default)
- replies.py: canonical yes/no classifier for confirmations
- dialogue.py: per-session pending interaction + CommandEngine entry point
- executor.py: store mutations -> CommandResult
- policy.py: configurable engine behavior
- results.py: CommandResult
"""
