from setuptools import setup, find_packages

setup(
    name="json-toolbox",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "pydantic>=2",
        "PyYAML",
        "structlog",
        "jsonschema",
        "python-dotenv",
    ],
    extras_require={
        "test": ["pytest", "hypothesis"],
    },
    entry_points={
        "console_scripts": [
            "json-toolbox=json_toolbox.core.cli:main",
        ],
    },
    description="Lenient JSON repair with formatting and YAML/XML conversion.",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.10",
)
