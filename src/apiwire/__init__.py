"""apiwire -- Call REST and GraphQL endpoints declared once in YAML.

Services are described in one YAML file each (base URL, authentication,
endpoints, aliases). Callers -- humans or LLM agents -- then reference an
endpoint by a short ``service.endpoint`` name and pass plain ``key=value``
arguments; apiwire maps them onto the path, query string, headers, and
body, authenticates, caches, transforms, and returns a structured result.

Typical workflow::

    apiwire list services
    apiwire call github.getRepo owner=octocat repo=hello-world

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware directories, YAML loading and service discovery.
    env: ``${VAR}`` placeholder resolution against the environment.
    engine: The orchestrator that runs a single or batch call end to end.
    exceptions: Exception hierarchy with error-code and exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.3.0"
