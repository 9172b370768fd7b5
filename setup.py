# setup.py
from setuptools import setup, find_packages

setup(
    name="chicken-knife",
    version="0.1.0",
    description="A simple & light-weight stack-based text processor",
    packages=find_packages(include=["ck", "ck.*", "ck_lsp", "ck_lsp.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pygls>=1.1,<2",
        "lsprotocol",
    ],
    extras_require={
        "test": ["pytest", "hypothesis"],
    },
    entry_points={
        "console_scripts": [
            "ck=ck.__main__:main",
            "ck-ls=ck_lsp.server:main",
            "ck-repl-server=ck_lsp.repl_server:main",
        ],
    },
    zip_safe=False,
)
