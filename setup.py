from setuptools import setup, find_packages

setup(
    name="loopgen",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "requests",
        "pydantic>=2",
        "pyyaml",
        "numpy",
        "soundfile",
        "sounddevice",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "loopgen=loopgen.app:main",
        ],
    },
    python_requires=">=3.10",
)
