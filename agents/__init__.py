"""Trip planning agents: parser, classifier, providers and the planner."""
