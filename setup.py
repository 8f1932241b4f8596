"""
Setup configuration for Storefront Scraper
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_file = Path(__file__).parent / 'README.md'
long_description = readme_file.read_text() if readme_file.exists() else ''

# Read requirements
requirements_file = Path(__file__).parent / 'requirements.txt'
requirements = []
if requirements_file.exists():
    requirements = [
        line.strip()
        for line in requirements_file.read_text().split('\n')
        if line.strip() and not line.startswith('#')
    ]

setup(
    name='storefront-scraper',
    version='1.0.0',
    author='Your Name',
    author_email='your.email@example.com',
    description='Product data extraction and reconciliation for e-commerce storefronts',
    long_description=long_description,
    long_description_content_type='text/markdown',
    url='https://github.com/yourusername/storefront-scraper',
    packages=find_packages(exclude=['tests', 'tests.*', 'examples']),
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Topic :: Software Development :: Libraries :: Python Modules',
        'Topic :: Internet :: WWW/HTTP :: Dynamic Content',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
    ],
    python_requires='>=3.8',
    install_requires=requirements,
    extras_require={
        'tests': ['pytest>=7.0'],
    },
    entry_points={
        'console_scripts': [
            'storefront-scraper=storefront_scraper.cli:main',
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
