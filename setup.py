"""
ldap_crawl
----------

ldap_crawl turns the entries of LDAP / Active Directory servers into
documents for a search index: it lists every entry matching a filter as
a document id, and renders single entries through a display template.

Notes for developers
--------------------

Run ``pip install -e .[test]`` to install the package together with the
test requirements, then run the tests with ``pytest``.
"""

from setuptools import setup, find_packages

setup(
    name="ldap-crawl",
    author="The ldap_crawl Authors",
    description="Crawls LDAP directories into search index documents",
    long_description=__doc__,
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    zip_safe=False,
    python_requires=">= 3.10",
    install_requires=[
        'ldap3 >= 2.9',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'ldap-crawl = ldap_crawl.__main__:main',
        ]
    },
    license="Apache Software License",
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Environment :: Console',
        'Intended Audience :: System Administrators',
        'License :: OSI Approved :: Apache Software License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: System :: Systems Administration :: Authentication/Directory :: LDAP',
    ],
)
