"""CLI for testvault: encryption utilities and test data management."""
import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Optional

import click

from testvault.adapters.cleanup.backends import HttpApiCleanupBackend
from testvault.domain.credentials import CredentialHelper, ROLES
from testvault.domain.crypto.cipher import SymmetricCipher
from testvault.domain.crypto.keys import generate_key
from testvault.domain.crypto.provider import get_cipher, get_token_codec
from testvault.domain.passwords import generate_secure_password
from testvault.domain.sensitive import SensitiveFieldWalker
from testvault.domain.testdata.manager import TestDataManager
from testvault.errors import (
    CredentialNotConfiguredError,
    DataFileNotFoundError,
    DecryptionError,
    KeyConfigurationError,
    PasswordPolicyError,
    UnknownScenarioError,
)
from testvault.logging_hardening import setup_logging_redaction
from testvault.settings import get_settings

DEFAULT_ROLE_PASSWORDS = {
    "admin": "AdminPass123!",
    "user": "UserPass456!",
    "guest": "GuestPass789!",
}


def _load_cipher() -> SymmetricCipher:
    try:
        return get_cipher()
    except KeyConfigurationError as e:
        raise click.ClickException(str(e))


def _build_manager(data_dir: Optional[str] = None, with_cipher: bool = False) -> TestDataManager:
    settings = get_settings()
    backends = {}
    if settings.api_cleanup_url:
        backends["api"] = HttpApiCleanupBackend(settings.api_cleanup_url, timeout=settings.api_timeout_seconds)

    return TestDataManager(
        data_dir=data_dir or settings.test_data_dir,
        cleanup_strategy=settings.cleanup_strategy,
        environment=settings.test_env,
        cipher=_load_cipher() if with_cipher else None,
        backends=backends,
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """testvault: credential encryption and test data management."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    setup_logging_redaction()


# ----------------------------------------------------------------------
# crypto
# ----------------------------------------------------------------------

@cli.group()
def crypto():
    """Encrypt, decrypt, hash and sign values."""
    pass


@crypto.command("encrypt")
@click.argument("plaintext")
def encrypt(plaintext: str):
    """Encrypt a value (prints IV:ciphertext)."""
    click.echo(_load_cipher().encrypt(plaintext))


@crypto.command("decrypt")
@click.argument("blob")
def decrypt(blob: str):
    """Decrypt an IV:ciphertext value."""
    try:
        click.echo(_load_cipher().decrypt(blob))
    except DecryptionError as e:
        raise click.ClickException(f"Decryption failed: {e}")


@crypto.command("generate")
@click.argument("length", type=int, default=12)
@click.option("--uppercase/--no-uppercase", default=True)
@click.option("--lowercase/--no-lowercase", default=True)
@click.option("--numbers/--no-numbers", default=True)
@click.option("--symbols/--no-symbols", default=True)
def generate_password(length: int, uppercase: bool, lowercase: bool, numbers: bool, symbols: bool):
    """Generate a random password."""
    try:
        click.echo(generate_secure_password(
            length,
            include_uppercase=uppercase,
            include_lowercase=lowercase,
            include_numbers=numbers,
            include_symbols=symbols,
        ))
    except PasswordPolicyError as e:
        raise click.ClickException(str(e))


@crypto.command("hash")
@click.argument("plaintext")
def hash_value(plaintext: str):
    """Print the SHA-256 hash of a value."""
    click.echo(SymmetricCipher.hash(plaintext))


@crypto.command("key")
@click.argument("length", type=click.IntRange(min=1), default=32)
def key(length: int):
    """Generate a random encryption key of LENGTH bytes (hex)."""
    click.echo(generate_key(length))


@crypto.command("token")
@click.argument("data")
@click.option("--ttl", "ttl_minutes", type=float, default=60, help="Token lifetime in minutes")
def token(data: str, ttl_minutes: float):
    """Create a signed, expiring token."""
    try:
        codec = get_token_codec()
    except KeyConfigurationError as e:
        raise click.ClickException(str(e))
    click.echo(codec.create_token(data, ttl_minutes))


@crypto.command("verify-token")
@click.argument("secure_token")
def verify_token(secure_token: str):
    """Verify a token and print its payload."""
    try:
        codec = get_token_codec()
    except KeyConfigurationError as e:
        raise click.ClickException(str(e))

    payload = codec.verify_token(secure_token)
    if payload is None:
        raise click.ClickException("Token is invalid or expired")
    click.echo(json.dumps(payload, indent=2))


# ----------------------------------------------------------------------
# data
# ----------------------------------------------------------------------

@cli.group()
def data():
    """Generate, persist and clean up test data."""
    pass


@data.command("generate")
@click.argument("data_type", type=click.Choice(["users", "products", "orders", "api"]))
@click.argument("count", type=click.IntRange(min=1), default=1)
@click.option("--endpoint", default="/api/test", help="Endpoint for api data")
@click.option("--role", default="user", help="Role for generated users")
@click.option("--encrypted-password", is_flag=True, help="Encrypt generated user passwords")
@click.option("--data-dir", default=None, help="Test data directory")
def generate_data(data_type: str, count: int, endpoint: str, role: str, encrypted_password: bool, data_dir: Optional[str]):
    """Generate COUNT entities of DATA_TYPE and save them under generated/."""
    manager = _build_manager(data_dir, with_cipher=encrypted_password)

    if data_type == "users":
        items = manager.generate_users(count, role=role, encrypted_password=encrypted_password)
    elif data_type == "products":
        items = [manager.generate_product() for _ in range(count)]
    elif data_type == "orders":
        items = [manager.generate_order() for _ in range(count)]
    else:
        items = [manager.generate_api_data(endpoint) for _ in range(count)]

    name = f"{data_type}-{int(time.time() * 1000)}"
    path = manager.save_test_data(name, items, "generated")

    click.echo(f"✓ Generated {len(items)} {data_type}")
    click.echo(f"Saved to: {path}")


@data.command("scenario")
@click.argument("name")
@click.option("--data-dir", default=None, help="Test data directory")
def scenario(name: str, data_dir: Optional[str]):
    """Print generated data for a named test scenario."""
    manager = _build_manager(data_dir)
    try:
        click.echo(json.dumps(manager.generate_scenario_data(name), indent=2))
    except UnknownScenarioError as e:
        raise click.ClickException(str(e))


@data.command("cleanup")
@click.argument("strategy", type=click.Choice(["auto", "all", "database", "api", "file"]), default="auto")
@click.option("--data-dir", default=None, help="Test data directory")
def cleanup(strategy: str, data_dir: Optional[str]):
    """Run a cleanup cycle."""
    manager = _build_manager(data_dir)
    asyncio.run(manager.cleanup(strategy))
    click.echo(f"✓ Cleanup completed (strategy: {strategy})")


@data.command("validate")
@click.argument("name")
@click.argument("category", default="fixtures")
@click.option("--data-dir", default=None, help="Test data directory")
def validate(name: str, category: str, data_dir: Optional[str]):
    """Check that a saved test data file is a JSON object or array."""
    manager = _build_manager(data_dir)
    try:
        content = manager.load_test_data(name, category)
    except DataFileNotFoundError as e:
        raise click.ClickException(str(e))
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {name}: {e}")

    if isinstance(content, list):
        click.echo(f"✓ Valid JSON array with {len(content)} items")
    elif isinstance(content, dict):
        click.echo("✓ Valid JSON object")
    else:
        raise click.ClickException("Data is not a JSON object or array")

    preview = json.dumps(content, indent=2)
    click.echo(preview[:500] + ("..." if len(preview) > 500 else ""))


@data.command("export")
@click.argument("name")
@click.option("--category", default="generated", help="Category of the source file")
@click.option("--format", "fmt", type=click.Choice(["json", "csv"]), default="json")
@click.option("--filename", default=None, help="Export file name (without extension)")
@click.option("--data-dir", default=None, help="Test data directory")
def export_data(name: str, category: str, fmt: str, filename: Optional[str], data_dir: Optional[str]):
    """Export a saved test data file to exports/ as JSON or CSV."""
    manager = _build_manager(data_dir)
    try:
        content = manager.load_test_data(name, category)
    except DataFileNotFoundError as e:
        raise click.ClickException(str(e))

    target = filename or f"{name}-export-{int(time.time() * 1000)}"
    if fmt == "json":
        path = manager.save_test_data(target, content, "exports")
    else:
        rows = content if isinstance(content, list) else [content]
        try:
            path = manager.store.write_csv("exports", target, rows)
        except (ValueError, AttributeError) as e:
            raise click.ClickException(f"CSV export needs a non-empty list of objects: {e}")

    click.echo(f"✓ Exported to: {path}")


@data.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--name", default=None, help="Fixture name (defaults to the file name)")
@click.option("--encrypt", "encrypt_fields", is_flag=True, help="Encrypt sensitive fields before saving")
@click.option("--data-dir", default=None, help="Test data directory")
def import_data(file: str, name: Optional[str], encrypt_fields: bool, data_dir: Optional[str]):
    """Import a JSON file into fixtures/."""
    with open(file, 'r') as f:
        try:
            content = json.load(f)
        except json.JSONDecodeError as e:
            raise click.ClickException(f"Invalid JSON in {file}: {e}")

    manager = _build_manager(data_dir)
    count = len(content) if isinstance(content, list) else 1

    if encrypt_fields:
        content = SensitiveFieldWalker(_load_cipher()).encrypt_sensitive_fields(content)

    path = manager.save_test_data(name or Path(file).stem, content, "fixtures")
    click.echo(f"✓ Imported {count} item(s) to {path}")


@data.command("stats")
@click.option("--data-dir", default=None, help="Test data directory")
def stats(data_dir: Optional[str]):
    """Show test data statistics."""
    manager = _build_manager(data_dir)
    summary = manager.get_data_statistics()

    click.echo("\nTest Data Statistics")
    click.echo("=" * 24)
    click.echo(f"Environment: {summary['environment']}")
    click.echo(f"Data Directory: {summary['data_directory']}")
    click.echo(f"Total Generated: {summary['total_generated']}")

    click.echo("\nFiles by category:")
    root = Path(summary["data_directory"])
    categories = sorted(p.name for p in root.iterdir() if p.is_dir()) if root.exists() else []
    for category in categories:
        click.echo(f"  {category:<12} {len(manager.store.list_names(category))}")


# ----------------------------------------------------------------------
# credentials
# ----------------------------------------------------------------------

@cli.group()
def credentials():
    """Manage encrypted role credentials."""
    pass


@credentials.command("setup")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=".env", help="Env file to write")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@click.option("--admin-password", default=DEFAULT_ROLE_PASSWORDS["admin"], show_default=True)
@click.option("--user-password", default=DEFAULT_ROLE_PASSWORDS["user"], show_default=True)
@click.option("--guest-password", default=DEFAULT_ROLE_PASSWORDS["guest"], show_default=True)
def setup_credentials(output: str, force: bool, admin_password: str, user_password: str, guest_password: str):
    """Write an env file with an encryption key and encrypted role passwords."""
    path = Path(output)
    if path.exists() and not force:
        raise click.ClickException(f"{output} already exists (use --force to overwrite)")

    settings = get_settings()
    encryption_key = settings.encryption_key or generate_key(32)
    cipher = SymmetricCipher(encryption_key)

    passwords = {"admin": admin_password, "user": user_password, "guest": guest_password}
    lines = [
        "# Encryption Configuration",
        f"ENCRYPTION_KEY={encryption_key}",
        "",
        "# Encrypted Test Credentials",
    ]
    for role in ROLES:
        lines.append(f"ENCRYPTED_{role.upper()}_PASSWORD={cipher.encrypt(passwords[role])}")
    lines.append("")
    lines.append("# Test User Credentials")
    for role in ROLES:
        lines.append(f"{role.upper()}_USERNAME={getattr(settings, f'{role}_username')}")

    path.write_text("\n".join(lines) + "\n")
    click.echo(f"✓ Encrypted credentials written to {output}")


@credentials.command("show")
@click.argument("role", type=click.Choice(list(ROLES)))
@click.option("--reveal", is_flag=True, help="Print the decrypted password")
def show_credentials(role: str, reveal: bool):
    """Show the configured credentials for ROLE."""
    settings = get_settings()
    helper = CredentialHelper(_load_cipher(), get_token_codec(settings), settings=settings)
    try:
        creds = helper.credentials_for_role(role)
    except (CredentialNotConfiguredError, DecryptionError) as e:
        raise click.ClickException(str(e))

    click.echo(f"Username: {creds['username']}")
    click.echo(f"Password: {creds['password'] if reveal else '******'}")


if __name__ == "__main__":
    cli()
