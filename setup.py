from setuptools import setup, find_packages


setup(
    name="pwseal",
    version="1.2.0",
    packages=find_packages(),
    description="Password-sealed, self-describing envelopes: scrypt/Argon2id + XChaCha20-Poly1305 + optional zstd, as Base64 text.",
    author="vercingetorx",
    python_requires=">=3.9",
    install_requires=[
        "pycryptodomex>=3.23.0",
        "argon2-cffi>=23.1.0",
        "zstandard>=0.23.0",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "pwseal=pwseal.cli:main",
        ]
    },
)
