"""PBKDF2v2 credential codec, PRF resolution and SCRAM key derivation."""
