"""Generate local signing keys for the session and management domains."""

from __future__ import annotations

from pathlib import Path

from ico_stress.keys import encode_private_key, generate_key_pair

KEYS_DIR = Path(__file__).resolve().parent
DOMAINS = ("session", "management")


def main() -> int:
    """Write ``<domain>.private.pem`` / ``<domain>.public.pem`` once, then print CLI values."""
    KEYS_DIR.mkdir(parents=True, exist_ok=True)

    for domain in DOMAINS:
        private_path = KEYS_DIR / f"{domain}.private.pem"
        public_path = KEYS_DIR / f"{domain}.public.pem"

        if private_path.exists() != public_path.exists():
            raise SystemExit(
                f"Only one {domain} key file exists. Remove both and run this script again."
            )

        if private_path.exists():
            print(f"Keys already exist, skipping: {private_path} / {public_path}")
        else:
            private_pem, public_pem = generate_key_pair()
            private_path.write_text(private_pem, encoding="utf-8")
            public_path.write_text(public_pem, encoding="utf-8")
            print(f"Generated: {private_path}")
            print(f"Generated: {public_path}")

        encoded = encode_private_key(private_path.read_text(encoding="utf-8"))
        print(f"{domain.upper()}_JWT_PRIVATE_KEY={encoded}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
