from __future__ import annotations
from typing import Optional


BOOK_CONTEXT = "Based on the context of 'Data Analysis from Scratch with Python'"

DYNAMIC_CONTENT_TYPES = ("explanation", "example", "practice", "simplify", "elaborate", "question")


def explain_code(code_snippet: str, context: str) -> str:
	return (
		f"Explain the following Python code snippet for a beginner learning data analysis, focusing on {context}:\n\n"
		f"```python\n{code_snippet}\n```\n\n"
		"Keep your explanation clear, concise, and focused on helping a beginner understand the code."
	)


def elaborate_concept(concept_name: str, context: str) -> str:
	return (
		f'Explain the concept of "{concept_name}" in the context of {context} for a beginner learning data analysis.\n\n'
		"Keep your explanation clear, concise, and focused on helping a beginner understand the concept."
	)


def suggest_alternative(code_snippet: str, context: str) -> str:
	return (
		f"Suggest an alternative approach for the following Python code snippet in the context of {context}:\n\n"
		f"```python\n{code_snippet}\n```\n\n"
		"Focus on clarity, efficiency, and best practices. Explain why your alternative might be better in some situations."
	)


def dynamic_content(
	concept_name: str,
	content_type: str,
	*,
	context: Optional[str] = None,
	user_question: Optional[str] = None,
) -> str:
	"""Prompt for one of ``DYNAMIC_CONTENT_TYPES``.

	Raises ``ValueError`` for an unknown type, or for ``question`` without a
	user question.
	"""
	extra = f" Additional context: {context}." if context else ""
	if content_type == "explanation":
		return (
			f'Explain the concept of "{concept_name}" for a beginner data analyst, {BOOK_CONTEXT}. '
			f"Keep it concise and focus on the key points that are most relevant for data analysis.{extra}"
		)
	if content_type == "example":
		return (
			f'Provide a simple, clear Python code example demonstrating "{concept_name}". '
			f"Add brief comments to explain each step. {BOOK_CONTEXT}, ensure the example is practical for data analysis tasks.{extra}"
		)
	if content_type == "practice":
		return (
			f'Suggest a very simple practice exercise idea (not the code) for "{concept_name}" that would be appropriate '
			f"for a beginner learning data analysis with Python. {BOOK_CONTEXT}, focus on a task that reinforces the core concept.{extra}"
		)
	if content_type == "simplify":
		return (
			f'Provide a simplified explanation of "{concept_name}" for someone who is completely new to programming and data analysis. '
			f"Use analogies and avoid technical jargon where possible. {BOOK_CONTEXT}.{extra}"
		)
	if content_type == "elaborate":
		return (
			f'Provide a more detailed explanation of "{concept_name}" with additional context and nuance. '
			f"{BOOK_CONTEXT}, include information about how this concept is used in real-world data analysis scenarios.{extra}"
		)
	if content_type == "question":
		if not user_question:
			raise ValueError("User question is required for question content type")
		return (
			f'The user is learning about "{concept_name}" in the context of data analysis with Python and has the following question: '
			f'"{user_question}". Please provide a clear, accurate answer. {BOOK_CONTEXT}.{extra}'
		)
	raise ValueError(f"Unsupported content type: {content_type}")


def book_concept(name: str, description: str, tags: list[str]) -> str:
	tag_text = ", ".join(tags) if tags else "data analysis"
	return (
		f"You are an expert data science educator with extensive knowledge in {tag_text}.\n"
		f'Your task is to provide a comprehensive explanation of the concept "{name}" for a student learning data analysis.\n\n'
		f"Concept Description: {description}\n\n"
		"Please provide a detailed explanation that includes:\n\n"
		f'1. A clear definition of "{name}" in simple terms\n'
		"2. The importance and relevance of this concept in data analysis\n"
		"3. How this concept is applied in practical data science scenarios\n"
		"4. Key principles or techniques associated with this concept\n"
		"5. Common challenges or misconceptions about this concept\n"
		f"6. How this concept relates to other areas in data science ({tag_text})\n\n"
		"Format your response with clear headings and bullet points where appropriate. "
		"Make complex topics accessible while maintaining technical accuracy."
	)


def summarize_document(text: str, category: str) -> str:
	label = category.replace("_", " ")
	return (
		"You are an expert in data analysis and related fields. Your task is to analyze the content of a PDF document "
		"and provide a factual explanation based ONLY on what is actually in the document.\n\n"
		f'Please analyze the following content from a PDF document categorized as "{label}":\n\n'
		f"{text}\n\n"
		"Your explanation should include:\n"
		"- A concise summary of the document's main topic and purpose\n"
		"- The key concepts, terms, and ideas that are explicitly presented\n"
		"- Any specific techniques, methodologies, or frameworks that are directly mentioned\n"
		"- Direct references to examples, data, or evidence provided in the document\n\n"
		"If the document appears to be different from what the category suggests, note this discrepancy and explain "
		"the actual content rather than what was expected.\n\n"
		"Format your response with clear headings and bullet points where appropriate.\n\n"
		"FINAL REMINDER: Base your explanation SOLELY on the text provided. Do not add external knowledge."
	)
