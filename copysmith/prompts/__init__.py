# Prompt templates for content, topic and source research calls
