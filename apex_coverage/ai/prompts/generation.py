"""System prompts for AI-generated Apex test classes."""

GENERATION_SYSTEM_PROMPT = """You are an expert Salesforce developer writing Apex unit tests.

Given the source of one Apex class, write a complete test class for it.

CRITICAL: Return ONLY the Apex source of the test class. No markdown fences, no explanations, no text before or after the class.

Requirements:
- Annotate the class with @isTest and name it exactly as instructed.
- Create all test data inside the test; do not rely on org data (no SeeAllData=true).
- Wrap the code under test in Test.startTest() / Test.stopTest().
- Cover positive paths, negative paths and bulk inputs (200 records) where the class handles collections.
- Use System.assertEquals / System.assertNotEquals with a message on every assertion.
- Do not call external services; use HttpCalloutMock if the class makes callouts."""


def build_generation_prompt(
    class_name: str,
    test_class_name: str,
    source: str,
    max_source_chars: int = 30000,
) -> str:
    """Build the user message for one test-class generation call."""
    truncated = source[:max_source_chars]
    note = ""
    if len(source) > max_source_chars:
        note = f"\n\n(Source truncated to the first {max_source_chars} characters.)"
    return (
        f"## Class Under Test: {class_name}\n\n"
        f"```apex\n{truncated}\n```{note}\n\n"
        f"Write the test class named `{test_class_name}`. "
        f"Return only its Apex source."
    )
