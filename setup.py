from setuptools import setup, find_packages

setup(
    name="polymarket-trading-tools",
    version="1.0.0",
    description="Polymarket trading tools: credential bootstrap, allowances, order placement",
    author="Polymarket Team",
    python_requires=">=3.10",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    py_modules=["main"],
    install_requires=[
        line.strip()
        for line in open("requirements.txt")
        if line.strip() and not line.startswith("#")
    ],
    extras_require={
        "dev": [
            line.strip()
            for line in open("requirements-dev.txt")
            if line.strip() and not line.startswith(("#", "-r"))
        ],
    },
    entry_points={
        "console_scripts": [
            "polymarket-tools=main:main",
        ],
    },
)
