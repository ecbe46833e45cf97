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
statelex.defaults -- System-wide default (global) values

"""
__all__				= [ 'grammar', 'faults', 'encoding',
                                    'config_name', 'config_section', 'config_files', 'config_paths',
                                    'config_open', 'ConfigNotFoundError' ]

import fnmatch
import glob
import logging
import os

log				= logging.getLogger( __package__ )

grammar				= 'colors'	# The default tokenizer used by the statelex command
faults				= False		# Report a Fault as a final output record, instead of failing
encoding			= 'utf-8'	# Input files are decoded using this encoding

# Define the default paths used for configuration files, etc.
config_name			= 'statelex.cfg'# Default Statelex application configuration file
config_section			= 'statelex'	# ... and the section containing the statelex command's settings

def config_paths( filename, extra=None ):
    """Yield the Statelex configuration search paths in *reverse* order of precedence (furthest or
    most general, to nearest or most specific).

    This is the order that is required by configparser; settings configured in "later" files
    override those in "earlier" ones.

    """
    yield os.path.join( os.path.dirname( __file__ ), filename )			# statelex installation dir
    yield os.path.join( os.getenv( 'APPDATA', os.sep + 'etc' ), filename )	# global app data dir, eg. /etc/
    yield os.path.join( os.path.expanduser( '~' ), '.statelex', filename )	# user dir, ~username/.statelex/name
    yield os.path.join( os.path.expanduser( '~' ), '.' + filename )		# user dir, ~username/.name
    for e in extra or []:							# any extra dirs...
        yield os.path.join( e, filename )
    yield filename								# current dir (most specific)

# Default Statelex configuration files path, In 'configparser' expected order (most general to most specific)
config_files			= list( config_paths( config_name ))

ConfigNotFoundError		= FileNotFoundError


def config_open( name, mode=None, extra=None, skip=None, reverse=True, **kwds ):
    """Find and open all glob-matched file name(s) found on the standard or provided configuration file
    paths (plus any extra), in most general to most specific order.  Yield the open file(s), or
    raise a ConfigNotFoundError (a FileNotFoundError) if no matching file(s) at all were found, to be
    somewhat consistent with a raw open() call.

    We traverse these in reverse order by default: nearest and most specific, to furthest and most
    general, and any matching file(s) in ascending sorted order; specify reverse=False to obtain the
    files in the most general/distant configuration first.

    By default, we assume the matching target file(s) are UTF-8/ASCII text files, and default to
    open in 'r' mode.

    A 'skip' glob pattern or predicate function taking a single name and returning True/False may be
    supplied.

    """
    if isinstance( skip, str ):
        filtered		= lambda names: (n for n in names if not fnmatch.fnmatch( n, skip ))
    elif hasattr( skip, '__call__' ):
        filtered		= lambda names: (n for n in names if not skip( n ))
    elif skip is None:
        filtered		= lambda names: names
    else:
        raise AssertionError( "Invalid skip={!r} provided".format( skip ))

    search			= list( config_paths( name, extra=extra ))
    if reverse:
        search			= reversed( search )
    found			= False
    for fn in search:
        for gn in sorted( filtered( glob.glob( fn ))):
            try:
                f		= open( gn, mode=mode or 'r', **kwds )
            except OSError as exc:
                # The file couldn't be opened (eg. permissions)
                log.info( "Ignoring configuration file %s: %s", gn, exc )
                continue
            found		= True
            yield f
    if not found:
        raise ConfigNotFoundError( "Failed to find configuration file(s) {name!r} in {search}".format(
            name=name, search=", ".join( config_paths( name, extra=extra ))))
