from setuptools import setup

import os

HERE				= os.path.dirname( os.path.abspath( __file__ ))

__version__			= None
__version_info__		= None
exec( open( os.path.join( HERE, 'version.py' ), 'r' ).read() )

console_scripts			= [
    'statelex			= statelex.main:main',
]

entry_points			= {
    'console_scripts': 		console_scripts,
}

def requirements( name ):
    """Load a requirements file; remove whitespace, elide blank lines and comments"""
    return list(
        ''.join( r.split() )
        for r in open( os.path.join( HERE, name )).readlines()
        if r.strip() and not r.strip().startswith( '#' )
    )

install_requires		= requirements( "requirements.txt" )
tests_require			= requirements( "requirements-tests.txt" )

# Since setuptools is retiring tests_require, add it as an option
extras_require			= {
    'tests':			tests_require,
}

package_dir			= {
    "statelex":			".",
}

long_description		= """\
Statelex is used to create rule-driven state machines which consume a stream
of input items and lazily produce a stream of output tokens, without needing
the entire input or output in memory.

Each state is an ordered list of rules (a matcher and a list of actions),
plus actions for when no rule matches, and for when the input is exhausted.
Actions may emit tokens, change (or call and return from) states, and push
and pop delimiters for matching symmetric quotes.

A Tokenizer specialization operates on characters, collecting them into a
buffer and emitting typed tokens; matchers may be literal characters,
predicates, or regular expressions.
"""

classifiers			= [
    "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
    "License :: Other/Proprietary License",
    "Programming Language :: Python :: 3",
    "Development Status :: 5 - Production/Stable",
    "Intended Audience :: Developers",
    "Environment :: Console",
    "Topic :: Software Development :: Compilers",
    "Topic :: Text Processing :: Filters"
]

setup(
    name			= "statelex",
    version			= __version__,
    install_requires		= install_requires,
    extras_require		= extras_require,
    python_requires		= ">=3.8",
    packages			= list( package_dir.keys() ),
    package_dir			= package_dir,
    zip_safe			= False,
    entry_points		= entry_points,
    author			= "Perry Kundert",
    author_email		= "perry@hardconsulting.com",
    description			= "Statelex is a rule-driven state machine tokenizer",
    long_description		= long_description,
    license			= "Dual License; GPLv3 and Proprietary",
    keywords			= "statelex tokenizer lexer state machine parser",
    classifiers			= classifiers,
)
