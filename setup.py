#!/usr/bin/env python
"""
Setup configuration for django-book-moderation package.
"""
from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="django-book-moderation",
    version="1.0.0",
    description="Comment reporting and moderation for a Django book review site, with automatic removal, audit log and REST API",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Web Environment",
        "Framework :: Django",
        "Framework :: Django :: 4.2",
        "Framework :: Django :: 5.0",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    keywords=["django", "comments", "books", "rest-framework", "moderation", "reports"],
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "Django>=4.2",
        "djangorestframework>=3.14.0",
        "django-filter>=23.0",
        "bleach>=6.0.0",
        "celery>=5.3.0",
    ],
    extras_require={
        'dev': [
            # Testing
            'pytest>=7.4.0',
            'pytest-django>=4.7.0',
            'pytest-cov>=4.1.0',
            'factory-boy>=3.3.0',
            'Faker>=20.0.0',
            'freezegun>=1.4.0',
        ],
    },
    zip_safe=False,
)
