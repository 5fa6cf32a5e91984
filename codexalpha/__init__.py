"""CodeXAlpha.

Backend service for the CodeXAlpha / LightOS coaching platform.

A user answers a coaching-business questionnaire (or submits a call
transcript). Each submission becomes a *persona run*, and the service turns it
into a batch of long-form CODEX documents by calling an OpenAI-compatible chat
completion API once per section.

Core subpackages
----------------

- ``codexalpha.core``:

  - Logging, Logfire monitoring and the shared error taxonomy.
  - SQLModel entities, async repositories and session management.
  - The AI gateway: provider resolution, execution modes, usage pricing.

- ``codexalpha.server``:

  - FastAPI application, settings and auth dependencies.
  - Services for generation, share links, PDF export, Lightathon, analytics
    and notifications.
  - Versioned REST routers for the user-facing app and the admin console.
"""

__version__ = "0.1.0"
