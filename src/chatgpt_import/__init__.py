"""Import ChatGPT export archives into Markdown notes, incrementally."""
