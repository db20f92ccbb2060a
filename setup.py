from setuptools import find_packages, setup

setup(
    name="markdown-translation-preview",
    version="1.0.0",
    description="Streaming English to Chinese translation preview for Markdown with a persistent cache",
    packages=find_packages(include=["translation_preview", "translation_preview.*"]),
    install_requires=[line for line in open("requirements-core.txt").read().splitlines() if line],
    extras_require={
        "test": [line for line in open("requirements-test.txt").read().splitlines() if line],
    },
    python_requires=">=3.9",
    entry_points={
        "console_scripts": [
            "translation-preview=translation_preview.cli:main",
        ],
    },
)
