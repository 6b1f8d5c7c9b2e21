"""forge_cli -- A dynamic, OpenAPI-driven CLI client and interactive shell.

The package fetches an API description at runtime, compiles it into a flat
command grammar (one dotted subcommand per path + HTTP method), and lets the
user call the API either once from the command line or repeatedly from an
interactive shell with context-aware tab completion.

Typical workflow::

    forge-api-cli --url http://127.0.0.1:8080                    # shell
    forge-api-cli --url http://127.0.0.1:8080 v1.products.id.get --id 42

Modules:
    app: Typer entry point (single-shot and interactive modes).
    models: Pydantic models for the spec description and the compiled grammar.
    config: Configuration precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.3.0"
