from setuptools import setup, find_packages

setup(
    name="entity-hashids",
    version="1.0.0",
    description="Reversible hashid identifiers and lookups for stored entities",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "flask>=3.0.0",
        "hashids>=1.3.1",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "hypothesis>=6.92.1",
        ],
    },
)
