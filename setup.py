"""
redis-graph-lite Setup Script

Install with: pip install -e .
"""

from setuptools import setup, find_packages

setup(
    name='redis-graph-lite',
    version='0.1.0',
    description='Graph nodes, edges and attributes encoded as Redis sets and strings',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'redis>=5.0.1',
        'structlog>=23.2.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.4.0',
            'pytest-asyncio>=0.23.0',
        ],
    },
    python_requires='>=3.11',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Database',
    ],
)
