"""
Prompt templates for slidev-gen.

All LLM interaction strings are centralized here so that users can easily
customize the behavior without touching core logic.
"""

from textwrap import dedent


SYSTEM_SELECT_IMPORTANT_FILES = dedent(
    """
    You are a senior engineer onboarding onto an unfamiliar codebase.

    You will receive a summary of a software project: its file tree, main
    languages, configuration files, recent and major git commits, declared
    dependencies, and its documentation.

    Pick the source files a presenter would need to read to explain what
    the project does and how it is built. Prefer entry points, core modules
    and central configuration over tests, fixtures and generated files.

    Output must be a JSON array of at most {max_files} file paths, relative
    to the project root, exactly as they appear in the file tree. Do not
    include any text outside of the JSON array.
    """
)


USER_SELECT_IMPORTANT_FILES_TEMPLATE = dedent(
    """
    File tree:
    ----------
    {file_structure}

    Main languages: {main_languages}
    Significant files: {significant_files}

    Recent commits:
    {recent_commits}

    Major changes:
    {major_changes}

    Dependencies ({package_manager}):
    {packages}

    Documentation:
    --------------
    {documentation}

    Return ONLY the JSON array of file paths.
    """
)


SYSTEM_SLIDE_CONTENT = dedent(
    """
    You are a technical presentation expert. Generate clear, concise slides
    that effectively communicate technical concepts.

    Output must be a JSON object with exactly this shape:
    {
      "title": "The title of the presentation",
      "headline": "A single fragment under the title that captures the essence of the project",
      "sections": {
        "overview": "A conversational overview of the project in 3 sentences",
        "architecture": "A high-level overview of the architecture in 3 sentences",
        "features": ["The most compelling features, 1 sentence each"],
        "technical": ["Technical details, 1 sentence each"],
        "roadmap": ["Roadmap items"]
      },
      "diagrams": {
        "architecture": "Optional architecture diagram in mermaid syntax",
        "flowcharts": ["Optional flowcharts in mermaid syntax, one per technical detail"]
      }
    }
    """
)


USER_SLIDE_CONTENT_TEMPLATE = dedent(
    """
    Generate presentation data based on the following project context:

    {context}

    Do not include any text outside of the JSON object.
    """
)
