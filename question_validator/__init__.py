"""Chemistry question validator: rubric-driven Higher Order Thinking critique via a hosted LLM."""
