from pathlib import Path
from setuptools import find_packages, setup
from setuptools.command.install import install


class InstallAiCli(install):
    """Installs ai-cli and reminds the user where the config file lives."""

    def run(self):
        super().run()

        cfg = Path.home() / ".config" / "ai-cli" / "config.toml"
        print(f"✔ ai-cli installed. Configuration: {cfg} (created on first run).")
        print(
            "\n⚠  Set api_key in the config file or export AI_CLI_API_KEY / "
            "OPENAI_API_KEY when your endpoint requires authentication."
        )


setup(
    name="ai-cli",
    version="0.3.0",
    description="Stream answers from OpenAI-compatible models with sanitized input and output",
    author="GAHEOS",
    python_requires=">=3.11",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "httpx>=0.27",
        "lxml>=5.0",
        "pypdf>=4.0",
        "tiktoken>=0.7",
    ],
    extras_require={
        "test": ["pytest>=8.0"],
    },
    entry_points={
        "console_scripts": ["ai-cli=aicli.cli:main"],
    },
    cmdclass={"install": InstallAiCli},
)
