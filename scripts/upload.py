"""
Script de linea de comandos para subir archivos a Zerafile.

Uso:
    python scripts/upload.py informe.pdf acta.docx
    python scripts/upload.py --tokens --contract-id '$ZRA+0001' image.png
    python scripts/upload.py --status
    python scripts/upload.py --reset-local

Variables de entorno:
    ZERAFILE_API_BASE       URL de la API (por defecto http://localhost:8080)
    ZERAFILE_STORAGE_PATH   archivo de estado local (por defecto ~/.zerafile/storage.json)

El script aplica los mismos limites que el servidor (10 archivos / 30 min,
20 MB / 10 min) con un historial local, para no hacer peticiones que
serian rechazadas. El servidor siempre tiene la ultima palabra.
"""

import argparse
import sys

import httpx

from app.client.rate_limiter import ClientRateLimiter
from app.client.uploader import ClientRateLimitError, UploadClient, UploadError
from app.logging_config import setup_logging
from app.services.formatting import format_bytes, format_time_until_reset


def print_status(client: UploadClient) -> None:
    local = client.limiter.get_status()
    print("Local history:")
    print(f"  files: {local['files'].used}/{local['files'].limit} "
          f"(reset in {format_time_until_reset(local['files'].reset_time)})")
    print(f"  data:  {format_bytes(local['data'].used)}/{format_bytes(local['data'].limit)} "
          f"(reset in {format_time_until_reset(local['data'].reset_time)})")

    try:
        server = client.status()
    except (UploadError, httpx.HTTPError) as e:
        print(f"Server status unavailable: {e}")
        return
    print("Server:")
    print(f"  files: {server['files']['used']}/{server['files']['limit']} "
          f"(reset in {server['files']['resetIn']})")
    print(f"  data:  {server['data']['usedFormatted']}/{server['data']['limitFormatted']} "
          f"(reset in {server['data']['resetIn']})")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Upload files to Zerafile")
    parser.add_argument("files", nargs="*", help="files to upload")
    parser.add_argument("--tokens", action="store_true", help="upload as token assets")
    parser.add_argument("--contract-id", help="token contract id ($ZRA+0000 or $sol-SOL+000000)")
    parser.add_argument("--status", action="store_true", help="show local and server limit usage")
    parser.add_argument("--reset-local", action="store_true", help="clear the local upload history")
    args = parser.parse_args(argv)

    setup_logging()

    if args.reset_local:
        ClientRateLimiter().reset()
        print("Local upload history cleared.")
        return 0

    with UploadClient() as client:
        if args.status:
            print_status(client)
            return 0

        if not args.files:
            parser.error("no files given")

        failures = 0
        for name in args.files:
            try:
                result = client.upload(
                    name,
                    path_hint="tokens" if args.tokens else "governance",
                    contract_id=args.contract_id,
                )
            except ClientRateLimitError as e:
                print(f"{name}: {e}", file=sys.stderr)
                # Si se alcanzo el limite, las siguientes tambien fallarian.
                return 2
            except (UploadError, httpx.HTTPError, OSError) as e:
                print(f"{name}: {e}", file=sys.stderr)
                failures += 1
                continue
            print(f"{name}: {result.cdn_url}")

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
