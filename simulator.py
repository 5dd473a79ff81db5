"""Interactive CLI simulator — walk through signup, login and profile calls.

Starts the API in the background and drives it over HTTP, the way the
single-page client would.  OTP codes are printed in the server logs when
SMTP is not configured.
"""

import asyncio
import json

import httpx

BLUE = "\033[94m"
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
DIM = "\033[2m"
BOLD = "\033[1m"
RESET = "\033[0m"

HOST = "127.0.0.1"
PORT = 8000

COMMANDS = """\
  signup   — request an OTP and complete registration
  login    — password login (3 failures lock the account for 3 hours)
  profile  — show the logged-in profile
  password — change password
  update   — change name / mobile number
  logout   — forget the current token
  quit     — exit"""


def _ask(prompt: str) -> str:
    return input(f"{YELLOW}{prompt}: {RESET}").strip()


def _show(resp: httpx.Response) -> dict:
    colour = GREEN if resp.is_success else RED
    data = resp.json()
    print(f"{colour}{BOLD}{resp.status_code}{RESET} {json.dumps(data, indent=2)}\n")
    return data


async def main() -> None:
    print(f"\n{BOLD}{'=' * 52}")
    print("  🔐  OTP Auth Service — Simulator")
    print(f"{'=' * 52}{RESET}\n")
    print(f"{DIM}{COMMANDS}{RESET}\n")

    # ── Start the API in the background ──────────────────
    import uvicorn

    from otp_auth.main import app

    config = uvicorn.Config(app, host=HOST, port=PORT, log_level="info")
    server = uvicorn.Server(config)
    server_task = asyncio.create_task(server.serve())

    # Give the server a moment to start
    await asyncio.sleep(0.5)

    token = ""
    async with httpx.AsyncClient(base_url=f"http://{HOST}:{PORT}/api") as client:
        while True:
            try:
                command = input(f"{BLUE}{BOLD}>{RESET} ").strip().lower()
            except (KeyboardInterrupt, EOFError):
                print(f"\n{DIM}Goodbye!{RESET}")
                break

            headers = {"Authorization": f"Bearer {token}"} if token else {}

            if command == "quit":
                print(f"{DIM}Goodbye!{RESET}")
                break

            if command == "signup":
                email = _ask("Email")
                first_name = _ask("First name")
                resp = await client.post(
                    "/auth/send-otp", json={"email": email, "firstName": first_name}
                )
                _show(resp)
                if not resp.is_success:
                    continue
                payload = {
                    "email": email,
                    "firstName": first_name,
                    "otp": _ask("OTP (see server log)"),
                    "lastName": _ask("Last name"),
                    "mobileNumber": _ask("Mobile number"),
                    "password": _ask("Password"),
                }
                data = _show(await client.post("/auth/verify-otp", json=payload))
                token = data.get("token", token)

            elif command == "login":
                payload = {"email": _ask("Email"), "password": _ask("Password")}
                data = _show(await client.post("/auth/login", json=payload))
                token = data.get("token", token)

            elif command == "profile":
                _show(await client.get("/user/profile", headers=headers))

            elif command == "password":
                payload = {
                    "currentPassword": _ask("Current password"),
                    "newPassword": _ask("New password"),
                }
                _show(await client.put("/user/update-password", json=payload, headers=headers))

            elif command == "update":
                payload = {
                    key: value
                    for key, value in (
                        ("firstName", _ask("First name (blank to keep)")),
                        ("lastName", _ask("Last name (blank to keep)")),
                        ("mobileNumber", _ask("Mobile number (blank to keep)")),
                    )
                    if value
                }
                _show(await client.put("/user/update-profile", json=payload, headers=headers))

            elif command == "logout":
                token = ""
                print(f"{GREEN}👋 Token discarded.{RESET}\n")

            elif command:
                print(f"{DIM}{COMMANDS}{RESET}\n")

    # Shut down the background server
    server.should_exit = True
    await server_task


if __name__ == "__main__":
    asyncio.run(main())
