"""SpaceHub CLI — run the API and manage accounts from a shell.

Usage:
    spacehub serve                                   # Run the API with uvicorn
    spacehub create-admin --name Ana --email a@x.com # Bootstrap an admin account
    spacehub hash-password                           # Print a bcrypt hash (prompts)

All commands load and validate settings first. A configuration error
is reported and the command exits non-zero before doing anything else.
"""

from __future__ import annotations

import asyncio

import click

from spacehub.auth.jwt import TokenService
from spacehub.auth.password import CredentialHasher
from spacehub.config import Settings, load_settings
from spacehub.errors import AppError, ConfigurationError


def _settings() -> Settings:
    try:
        return load_settings()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e


@click.group()
def cli():
    """SpaceHub identity service."""


@cli.command()
@click.option("--host", default=None, help="Bind address (default from config).")
@click.option("--port", default=None, type=int, help="Port (default from config).")
def serve(host: str | None, port: int | None):
    """Run the HTTP API."""
    import uvicorn

    from spacehub.main import create_app

    settings = _settings()
    try:
        app = create_app(settings)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    uvicorn.run(app, host=host or settings.host, port=port or settings.port)


@cli.command("create-admin")
@click.option("--name", required=True)
@click.option("--email", required=True)
@click.password_option()
def create_admin(name: str, email: str, password: str):
    """Create an admin account directly in the identity store."""
    settings = _settings()
    try:
        user_id = asyncio.run(_create_admin(settings, name, email, password))
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    except AppError as e:
        raise click.ClickException(e.public_message) from e
    click.echo(f"Created admin {email} ({user_id})")


async def _create_admin(settings: Settings, name: str, email: str, password: str) -> str:
    from spacehub.main import build_store_provider
    from spacehub.services.identity_service import IdentityService

    hasher = CredentialHasher.from_settings(settings)
    tokens = TokenService.from_settings(settings)
    store_provider, engine = build_store_provider(settings)
    try:
        async with store_provider() as store:
            svc = IdentityService(store, hasher, tokens)
            await svc.signup(
                {"name": name, "email": email, "password": password, "is_admin": True}
            )
            user = await store.get_by_email(email.strip().lower())
            return str(user.id)
    finally:
        hasher.shutdown()
        if engine is not None:
            await engine.dispose()


@cli.command("hash-password")
@click.password_option()
def hash_password(password: str):
    """Hash a password with the configured bcrypt cost."""
    settings = _settings()
    hasher = CredentialHasher.from_settings(settings)
    try:
        click.echo(asyncio.run(hasher.hash(password)))
    finally:
        hasher.shutdown()


if __name__ == "__main__":
    cli()
