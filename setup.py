from setuptools import find_packages, setup

setup(
    name="tellescope-mcp",
    version="0.1.0",
    description="MCP gateway exposing Tellescope fetch-one/fetch-page operations as dynamically named tools",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.11",
    install_requires=[
        "anyio>=4.0",
        "fastmcp>=2.10,<3",
        "mcp>=1.10",
        "pydantic>=2.5",
        "python-dotenv>=1.0",
        "requests>=2.25.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tellescope-mcp=tellescope_mcp.gateway.cli:main",
        ],
    },
)
