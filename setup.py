from setuptools import setup, find_packages
import os

# Read README.md if it exists
long_description = ""
if os.path.exists("README.md"):
    with open("README.md", "r", encoding="utf-8") as f:
        long_description = f.read()

setup(
    name="gpio-flicker",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "numpy>=1.24.0",
        "pydantic>=2.5.2",
        "pyyaml>=6.0",
    ],
    extras_require={
        "pi": [
            "gpiozero>=1.6.2",
        ],
        "dev": [
            "pytest>=7.4.3",
            "pytest-asyncio>=0.23.0",
            "gpiozero>=1.6.2",
            "black>=23.11.0",
            "isort>=5.12.0",
            "mypy>=1.7.1",
        ],
    },
    python_requires=">=3.10",
    author="gpio-flicker contributors",
    description="Randomized candle and sparkle flicker on GPIO output pins",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
