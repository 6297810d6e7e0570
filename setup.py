from setuptools import setup, find_packages

setup(
    name="mirabs",
    version="0.1.0",
    description="mirabs — abstract interpretation of MIR function bodies",
    packages=find_packages(include=["mirabs", "mirabs.*"]),
    python_requires=">=3.10",
    install_requires=[
        "z3-solver>=4.12.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "hypothesis>=6.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "mirabs=mirabs.cli:main",
        ],
    },
)
