"""
Setup configuration for AWS CDK Python application
RAPIDS GPU Notebook on Amazon ECS
"""

import os
from setuptools import setup, find_packages

# Read README for long description
def read_readme():
    """Read README.md for long description."""
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "AWS CDK Python application for a RAPIDS GPU notebook on Amazon ECS"

# Read requirements from requirements.txt
def read_requirements():
    """Read requirements from requirements.txt."""
    requirements_path = os.path.join(os.path.dirname(__file__), 'requirements.txt')
    requirements = []
    if os.path.exists(requirements_path):
        with open(requirements_path, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#'):
                    requirements.append(line)
    return requirements or [
        "aws-cdk-lib>=2.150.0,<3.0.0",
        "constructs>=10.0.0,<11.0.0",
        "cdk-nag>=2.28.0,<3.0.0",
    ]

setup(
    name="ecs-nvidia-rapids-notebook-cdk",
    version="1.0.0",
    description="AWS CDK Python application for a RAPIDS GPU notebook on Amazon ECS",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    author="Cloud Platform Team",
    author_email="platform-team@example.com",

    # Package configuration
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["app"],
    include_package_data=True,

    # Python version requirement
    python_requires=">=3.8",

    # Dependencies
    install_requires=read_requirements(),

    # Development dependencies
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ]
    },

    # Entry points
    entry_points={
        "console_scripts": [
            "synth-rapids-notebook=app:main",
        ],
    },

    # Package metadata
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: System :: Systems Administration",
    ],

    # Keywords for package discovery
    keywords="aws cdk ecs gpu rapids jupyter cognito",

    zip_safe=False,
)
