"""Authorization handlers for CLI"""

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Optional

from oauth.authorization import AuthorizationFlow
from oauth.models import AuthData
from transfer.extension import TransferExtension

logger = logging.getLogger(__name__)


def authorize(
    extension: TransferExtension,
    data_type: str,
    redirect_uri: str,
    job_id: str,
    console,
    open_browser: bool = True,
) -> Optional[AuthData]:
    """
    Run the authorization code flow for one data type

    The code is exchanged in this process, so a PKCE verifier never leaves
    memory.

    Args:
        extension: Initialized extension of the destination
        data_type: Data type the tokens are requested for
        redirect_uri: Redirect URI registered with the provider
        job_id: Job identifier carried in the state parameter
        console: Rich console for output
        open_browser: Whether to open the authorization URL in a browser

    Returns:
        AuthData on success, None if the user cancelled
    """
    flow = AuthorizationFlow(extension.oauth_config, extension.app_credentials, data_type)

    console.print("\n[bold]Step 1:[/bold] Authorize the application")
    if open_browser:
        auth_url = flow.start_login_flow(redirect_uri, job_id)
        console.print("[green][OK][/green] Browser opened, if nothing happened open this URL manually:")
    else:
        auth_url = flow.generate_configuration(redirect_uri, job_id).auth_url
        console.print("Open this URL in your browser:")
    console.print(auth_url, soft_wrap=True)

    console.print("\n[bold]Step 2:[/bold] Paste the code parameter of the redirect below\n")
    try:
        code = input("Authorization code: ").strip()
    except (KeyboardInterrupt, EOFError):
        console.print("\n[yellow]Authorization cancelled by user[/yellow]")
        return None

    if not code:
        console.print("[red]Missing code. Please paste the code from the redirect URL.[/red]")
        return None

    console.print("\n[bold]Step 3:[/bold] Exchanging code for tokens...")
    auth_data = flow.generate_auth_data(redirect_uri, code, job_id)
    logger.debug(f"[{job_id}] Token exchange succeeded for {extension.service_id} {data_type}")
    console.print("[green][OK][/green] Authorization successful!")
    return auth_data


def save_auth_data(auth_data: AuthData, path: Path) -> None:
    path.write_text(json.dumps(asdict(auth_data), indent=2), encoding="utf-8")
    path.chmod(0o600)


def load_auth_data(path: Path, default_token_url: str) -> AuthData:
    """
    Read tokens saved by the authorize command

    Raises:
        ValueError: If the file has no access_token
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not data.get("access_token"):
        raise ValueError(f"{path} has no access_token")
    return AuthData(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        token_server_url=data.get("token_server_url") or default_token_url,
    )
