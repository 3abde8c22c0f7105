from setuptools import setup, find_namespace_packages

setup(
    name="ffhls",
    version="1.0.0",
    packages=find_namespace_packages(include=["ffhls", "ffhls.*"]),
    install_requires=[
        "psutil>=5.9.0",
        "pyyaml>=6.0",
        "rich>=13.0.0",
        "aiohttp>=3.9.0"
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "ffhls=ffhls.cli:main",
        ],
    },
    python_requires=">=3.10",
)
