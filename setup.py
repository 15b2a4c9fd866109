import os

from setuptools import setup, find_packages

long_description = ""
if os.path.exists("README.md"):
    with open("README.md", "r", encoding="utf-8") as fh:
        long_description = fh.read()

setup(
    name="travelblog",
    version="0.1.0",
    description="Flask backend for a travel blog: posts, contact submissions, newsletter and news ingestion",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["travelblog", "travelblog.*"]),
    py_modules=["main"],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: Flask",
    ],
    python_requires=">=3.9",
    install_requires=[
        "Flask>=3.0.0",
        "Werkzeug>=3.0.0",
        "MarkupSafe>=2.1",
        "Flask-CORS>=4.0.0",
        "Flask-SocketIO>=5.3.0",
        "python-dotenv>=1.0.0",
        "requests>=2.28.0",
        "urllib3>=1.26",
        "pymongo>=4.6",
        "boto3>=1.28",
        "botocore>=1.31",
        "resend>=0.7",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-flask>=1.2",
            "mongomock>=4.1",
            "black>=22.0",
            "flake8>=5.0",
        ],
    },
    zip_safe=False,
)
