#
# Statelex -- Rule-driven state machine tokenizer
#
# Copyright (c) 2013, Hard Consulting Corporation.
#
# Statelex is free software: you can redistribute it and/or modify it under the
# terms of the GNU General Public License as published by the Free Software
# Foundation, either version 3 of the License, or (at your option) any later
# version.  See the LICENSE file at the top of the source tree.
#
# Statelex is distributed in the hope that it will be useful, but WITHOUT ANY
# WARRANTY; without even the implied warranty of MERCHANTABILITY or FITNESS FOR
# A PARTICULAR PURPOSE.  See the GNU General Public License for more details.
#

__author__                      = "Perry Kundert"
__email__                       = "perry@hardconsulting.com"
__copyright__                   = "Copyright (c) 2013 Hard Consulting Corporation"
__license__                     = "Dual License: GPLv3 (or later) and Commercial (see LICENSE)"

"""
statelex.main -- Tokenize files (or standard input) with one of the ready-made grammars, printing
each Token as a line of JSON:

    $ echo -n "This [blue]is[] it" | statelex -g colors
    {"type": "text", "value": "This "}
    {"type": "color", "value": "blue"}
    ...

"""

import argparse
import configparser
import json
import logging
import sys

from . import defaults
from .grammars import GRAMMARS
from .statemachine import END, Aborted, Fault, log_cfg
from .version import __version__

log				= logging.getLogger( __package__ )


def characters( stream, size=4096 ):
    """Yield the characters of a text stream, reading it a block at a time."""
    for block in iter( lambda: stream.read( size ), '' ):
        for c in block:
            yield c


def load_config( filename=None ):
    """Read the standard configuration files (most general first), then any explicitly named one;
    a missing explicitly named file is an error."""
    config			= configparser.ConfigParser()
    try:
        for f in defaults.config_open( defaults.config_name, reverse=False ):
            with f:
                log.info( "Loading configuration %s", f.name )
                config.read_file( f )
    except defaults.ConfigNotFoundError as exc:
        log.debug( "%s", exc )
    if filename:
        with open( filename, 'r' ) as f:
            log.info( "Loading configuration %s", filename )
            config.read_file( f )
    return config


def record( token ):
    """The JSON representation of a Token, or a Fault."""
    if isinstance( token, Fault ):
        return json.dumps( dict(
            fault	= token.message,
            position	= token.position,
            item	= None if token.item is END else token.item ))
    return json.dumps( dict( type=token.type, value=token.value ), default=str )


def tokenize( definition, name, stream, output=None, faults=False ):
    """Print each Token produced from the stream; returns True iff no Fault occurred."""
    output			= output or sys.stdout
    run				= definition.run( characters( stream ), faults=faults )
    count			= 0
    try:
        for token in run:
            print( record( token ), file=output )
            count	       += 1
    except Aborted as exc:
        log.warning( "%s: %s", name, exc )
        print( "%s: %s" % ( name, exc ), file=sys.stderr )
    log.normal( "%s: %d records via %s%s", name, count, definition.name,
                "; %s" % ( run.fault, ) if run.fault else "" )
    return run.fault is None


def main( argv=None ):
    ap				= argparse.ArgumentParser(
        description = "Tokenize text using a rule-driven state machine",
        epilog = "Each Token is printed as a JSON object, one per line" )

    ap.add_argument( '--version', action='version', version='%(prog)s ' + __version__ )
    ap.add_argument( '-v', '--verbose', action="count",
                     default=0,
                     help="Display logging information." )
    ap.add_argument( '-l', '--log',
                     help="Log file, if desired" )
    ap.add_argument( '-c', '--config',
                     help="Configuration file, in addition to any {name} found (section [{section}])".format(
                         name=defaults.config_name, section=defaults.config_section ))
    ap.add_argument( '-g', '--grammar', default=None,
                     help="The tokenizer to use: {choices} (default: {grammar})".format(
                         choices=', '.join( sorted( GRAMMARS )), grammar=defaults.grammar ))
    ap.add_argument( '-f', '--faults', action='store_true', default=None,
                     help="Report input errors as a final JSON record with a \"fault\" key" )
    ap.add_argument( 'files', nargs="*",
                     help="Files to tokenize (default: -, standard input)" )
    args			= ap.parse_args( argv )

    # Set up logging level (-v...) and --log <file>
    levelmap 			= {
        0: logging.WARNING,
        1: logging.NORMAL,
        2: logging.DETAIL,
        3: logging.INFO,
        4: logging.DEBUG,
        }
    log_cfg['level']		= ( levelmap[args.verbose]
                                    if args.verbose in levelmap
                                    else logging.TRACE )
    if args.log:
        log_cfg['filename']	= args.log

    logging.basicConfig( **log_cfg )

    try:
        config			= load_config( args.config )
    except (OSError, configparser.Error) as exc:
        log.warning( "Failed to load configuration: %s", exc )
        print( "Failed to load configuration: %s" % ( exc ), file=sys.stderr )
        return 2

    grammar			= args.grammar or config.get(
        defaults.config_section, 'grammar', fallback=defaults.grammar )
    if grammar not in GRAMMARS:
        ap.error( "Unknown grammar {!r}; choose one of: {}".format( grammar, ', '.join( sorted( GRAMMARS ))))
    faults			= args.faults
    if faults is None:
        faults			= config.getboolean(
            defaults.config_section, 'faults', fallback=defaults.faults )

    success			= True
    for name in args.files or [ '-' ]:
        if name == '-':
            success	       &= tokenize( GRAMMARS[grammar], '<stdin>', sys.stdin, faults=faults )
            continue
        try:
            stream		= open( name, 'r', encoding=defaults.encoding )
        except OSError as exc:
            log.warning( "Failed to open input: %s", exc )
            print( "Failed to open input: %s" % ( exc ), file=sys.stderr )
            return 2
        with stream:
            success	       &= tokenize( GRAMMARS[grammar], name, stream, faults=faults )
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit( main() )
