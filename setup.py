"""Module for setup tools.

Update install_requires list with
additional runtime modules as required.
"""
import setuptools


with open("README.md") as fp:
    long_description = fp.read()

setuptools.setup(
    name="tf_aws_synth",
    version="0.1.0",

    description="Declarative AWS resource constructors that emit Terraform JSON",
    long_description=long_description,
    long_description_content_type="text/markdown",

    author="niftynerd",
    author_email="niftynerd1337@gmail.com",

    packages=setuptools.find_packages(include=["tf_aws_synth", "tf_aws_synth.*"]),

    install_requires=[
        "boto3",
        "pydantic>=2.5",
        "PyYAML>=5.1",
    ],

    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },

    entry_points={
        "console_scripts": [
            "tf-aws-synth=tf_aws_synth.app:main",
        ],
    },

    python_requires=">=3.9",

    classifiers=[
        "Development Status :: 4 - Beta",

        "Intended Audience :: Developers",

        "Programming Language :: Python :: 3",

        "Topic :: Software Development :: Code Generators",
        "Topic :: Utilities",

        "Typing :: Typed",
    ],
)
