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

import collections
import logging
import re
import types

import greenery

from . import misc

__author__                      = "Perry Kundert"
__email__                       = "perry@hardconsulting.com"
__copyright__                   = "Copyright (c) 2013 Hard Consulting Corporation"
__license__                     = "Dual License: GPLv3 (or later) and Commercial (see LICENSE)"

"""
statemachine -- Rule-driven state machines, transforming a stream of input items into a stream of
output tokens.

A machine is declared with a Builder; each state is a list of rules (a matcher and some actions),
examined in order 'til the first one matching the current input item, plus an optional fallback
(run when no rule matches) and an optional end rule (run once, when input is exhausted):

    machine = Builder() \\
        .state( 'even' ) \\
            .on( 1, transition( 'odd' )) \\
            .on_end( abort( "Odd count" )) \\
        .state( 'odd' ) \\
            .on( 1, transition( 'even' )) \\
        .build()

The resultant Definition is immutable, and may be .run over any number of input iterables; each run
is an iterator, which pulls input only when more output tokens are required.
"""

__all__				= [ 'log_cfg', 'END', 'Token', 'Fault',
                                    'StateMachineError', 'ConfigurationError', 'Aborted',
                                    'Misconfigured', 'UndefinedState',
                                    'Matcher', 'Literal', 'Predicate', 'Pattern', 'literal_wrapper',
                                    'Context', 'Rule', 'State', 'Definition', 'Builder', 'Run',
                                    'action', 'transition', 'call', 'ret', 'abort' ]

log				= logging.getLogger( __package__ )
log_cfg				= {
    "level":	logging.WARNING,
    "datefmt":	'%m-%d %H:%M:%S',
    "format":	'%(asctime)s.%(msecs).03d %(name)-8.8s %(levelname)-8.8s %(funcName)-10.10s %(message)s',
}


class _End( object ):
    """The type of the END sentinel; the current item of a run once its input is exhausted."""
    __slots__			= ()
    def __repr__( self ):
        return 'END'
    __str__			= __repr__
    def __bool__( self ):
        return False

END				= _End()


Token				= collections.namedtuple( 'Token', 'type value' )


class Fault( collections.namedtuple( 'Fault', 'message position item' )):
    """The terminal outcome of a run that could not proceed; the diagnostic message, and the 0-based
    position and item in the input that caused it."""
    __slots__			= ()
    def __str__( self ):
        return "%s at position %s (%r)" % ( self.message, self.position, self.item )


class StateMachineError( Exception ):
    """Base of all state machine failures"""
    pass


class ConfigurationError( StateMachineError ):
    """A state machine cannot be built from the supplied declarations"""
    pass


class Aborted( StateMachineError ):
    """A run has been terminated by a Fault; it cannot be resumed."""
    def __init__( self, fault ):
        super( Aborted, self ).__init__( str( fault ))
        self.fault		= fault


class Misconfigured( Aborted ):
    """A run has been terminated by a defect in the state machine's rules (rather than its input)"""
    pass


class UndefinedState( Misconfigured ):
    """A run has entered a state that was never declared"""
    pass

#
# Matchers
#
#     Each rule's matcher is one of a Literal (compared to each input item), a Predicate (invoked with
# the run's Context), or a Pattern (a regular expression tested against the item).  The Builder's
# matcher wrapper chooses a variant for each raw matcher value once, when the rule is declared; the
# variant is then resolved to a plain Context predicate.
#
class Matcher( object ):
    def predicate( self ):
        """Return a function of the run's Context, returning True iff the rule matches."""
        raise NotImplementedError()

    def __repr__( self ):
        return '<%s>' % ( self )


class Literal( Matcher ):
    """Matches an item equal to value."""
    def __init__( self, value ):
        self.value		= value

    def __str__( self ):
        return repr( self.value )

    def predicate( self ):
        value			= self.value
        return lambda context: context.item == value


class Predicate( Matcher ):
    """Matches when the supplied function of the run's Context returns True."""
    def __init__( self, function ):
        if not hasattr( function, '__call__' ):
            raise ConfigurationError( "A Predicate requires a callable, not: %r" % ( function, ))
        self.function		= function

    def __str__( self ):
        return misc.function_name( self.function )

    def predicate( self ):
        return self.function


class Pattern( Matcher ):
    """Matches an item containing a match for a compiled re pattern, or an item wholly accepted by a
    regular expression (supplied as a str, or as a greenery Pattern or Fsm).  A str regex is compiled
    into a greenery finite state machine once, here, and each item is run through it.

    """
    def __init__( self, pattern ):
        self.pattern		= pattern
        self.machine		= None
        if isinstance( pattern, str ):
            self.machine	= greenery.parse( pattern ).to_fsm()
        elif hasattr( pattern, 'to_fsm' ):
            self.machine	= pattern.to_fsm()
        elif hasattr( pattern, 'accepts' ):
            self.machine	= pattern
        elif not isinstance( pattern, re.Pattern ):
            raise ConfigurationError( "Provide a regular expression, a compiled re or a greenery Pattern/Fsm, not: %r" % (
                pattern, ))

    def __str__( self ):
        return '/%s/' % ( getattr( self.pattern, 'pattern', self.pattern ))

    def predicate( self ):
        if self.machine is not None:
            machine		= self.machine
            return lambda context: machine.accepts( context.item )
        search			= self.pattern.search
        return lambda context: search( context.item ) is not None


def literal_wrapper( matcher ):
    """The default matcher wrapper; any explicit Matcher is used as-is, a callable is a Predicate, and
    anything else is a Literal."""
    if isinstance( matcher, Matcher ):
        return matcher
    if hasattr( matcher, '__call__' ):
        return Predicate( matcher )
    return Literal( matcher )


def resolve( matcher ):
    """Convert the result of a matcher wrapper into a Context predicate."""
    if isinstance( matcher, Matcher ):
        return matcher.predicate()
    if hasattr( matcher, '__call__' ):
        return matcher
    raise ConfigurationError( "Matcher wrapper must produce a Matcher or a callable, not: %r" % (
        matcher, ))

#
# Context
#
#     The mutable state of one run; created fresh by each run, and passed to every matcher and
# action.  Any additional per-run fields (eg. a tokenizer's buffer) are established by the
# Definition's context initializer.
#
class Context( object ):
    def __init__( self, state ):
        self.state		= state		# The active state's name
        self.pending		= None		# The state to activate before the next item, if any
        self.item		= None		# The input item being processed (END when exhausted)
        self.position		= -1		# The 0-based index of the current item
        self.tokens		= collections.deque() # Tokens awaiting delivery
        self.buffer		= None
        self.values		= []		# Stack of pushed items, for matching delimiters
        self.calls		= []		# Stack of state names awaiting a ret

    def __repr__( self ):
        return "<Context %s%s at %d: %r>" % (
            self.state, '' if self.pending is None else '->%s' % self.pending, self.position, self.item )

    def change( self, state ):
        """Schedule a transition; the active state changes before the next input item is processed."""
        self.pending		= state

    def settle( self ):
        """Activate any pending state."""
        if self.pending is not None:
            self.state		= self.pending
            self.pending	= None

    def emit( self, token ):
        self.tokens.append( token )

    def fault( self, message ):
        return Fault( message, self.position, self.item )

#
# Actions
#
#     Each action is a callable invoked with the run's Context.  Any callable will serve; these
# classes provide the generic vocabulary, and identify themselves in logs and in Definition checks.
#
class action( object ):
    def __call__( self, context ):
        raise NotImplementedError()

    def __str__( self ):
        return self.__class__.__name__ + '()'

    def __repr__( self ):
        return '<%s>' % ( self )


class transition( action ):
    """Enter the target state, before the next input item is processed.  The remaining actions of the
    rule still see the present state."""
    def __init__( self, target ):
        self.target		= target

    def __str__( self ):
        return "%s(%r)" % ( self.__class__.__name__, self.target )

    def __call__( self, context ):
        context.change( self.target )


class call( transition ):
    """A transition to target which remembers the present state, for a later ret."""
    def __call__( self, context ):
        context.calls.append( context.state )
        context.change( self.target )


class ret( action ):
    """Return to the state which made the most recent call."""
    def __call__( self, context ):
        if not context.calls:
            raise Misconfigured( context.fault( "Can't return from state %r; call stack empty" % (
                context.state )))
        context.change( context.calls.pop() )


class abort( action ):
    """Terminate the run with a Fault describing the current input item."""
    def __init__( self, message ):
        self.message		= message

    def __str__( self ):
        return "%s(%r)" % ( self.__class__.__name__, self.message )

    def __call__( self, context ):
        raise Aborted( context.fault( self.message ))

#
# Rule, State, Definition
#
class Rule( collections.namedtuple( 'Rule', 'matcher predicate actions' )):
    __slots__			= ()
    def __str__( self ):
        return "%s: %s" % ( self.matcher, ', '.join( str( a ) for a in self.actions ))


class State( object ):
    """A named, ordered list of rules, plus fallback and end actions."""
    def __init__( self, name, rules=None, fallback=None, ending=None ):
        self.name		= name
        self.rules		= list( rules or [] )
        self.fallback		= tuple( fallback or () )
        self.ending		= tuple( ending or () )

    def __repr__( self ):
        return '<State %s: %d rules>' % ( self.name, len( self.rules ))

    def frozen( self ):
        """A copy which shares nothing mutable with this one."""
        dup			= State( self.name, fallback=self.fallback, ending=self.ending )
        dup.rules		= tuple( self.rules )
        return dup

    def select( self, context ):
        """The actions of the first rule matching the context's item, or the fallback actions."""
        for rule in self.rules:
            if rule.predicate( context ):
                return rule.actions
        return self.fallback

    def actions( self ):
        """Yield every action of the state."""
        for rule in self.rules:
            for act in rule.actions:
                yield act
        for act in self.fallback + self.ending:
            yield act


class Definition( object ):
    """An immutable table of States, ready to run.  Produced by Builder.build; not usually
    instantiated directly.  May be shared by any number of simultaneous runs."""
    def __init__( self, name, initial, states, initializer=None ):
        self._name		= name
        self._initial		= initial
        self._states		= types.MappingProxyType(
            collections.OrderedDict( (n,s.frozen()) for n,s in states.items() ))
        self._initializer	= initializer

    def __repr__( self ):
        return '<Definition %s: %s>' % ( self._name, ', '.join( self._states ))

    @property
    def name( self ):
        return self._name

    @property
    def initial( self ):
        return self._initial

    @property
    def states( self ):
        return self._states

    def __getitem__( self, name ):
        return self._states[name]

    def __contains__( self, name ):
        return name in self._states

    def undefined( self ):
        """Return the sorted names of all transition/call targets which are not defined States."""
        return sorted( set(
            act.target
            for sta in self._states.values()
            for act in sta.actions()
            if isinstance( act, transition ) and act.target not in self._states ))

    def initialize( self, context ):
        if self._initializer is not None:
            self._initializer( context )

    def run( self, source, faults=False ):
        """Begin processing the supplied iterable (or iterator) of input items; returns an iterator
        producing Tokens.  If faults, any Fault is delivered as the final item instead of being
        raised as an Aborted exception."""
        return Run( self, source, faults=faults )

    process			= run


class Builder( object ):
    """Collects the States of a Definition.  Each method returns the Builder, so the declarations may
    be chained.  Rules (.on, .on_end, .otherwise) apply to the most recently opened .state; the first
    state opened is the initial state.

    """
    def __init__( self, name=None ):
        self.name		= name or 'machine'
        self.states		= collections.OrderedDict()
        self.current		= None
        self.initial		= None
        self.wrapper		= literal_wrapper
        self.initializer	= None

    def matcher_wrapper( self, wrapper ):
        """Supply a function converting each raw matcher supplied to .on into a Matcher (or a Context
        predicate)."""
        self.wrapper		= wrapper
        return self

    def context_initializer( self, initializer ):
        """Supply a function invoked with each run's fresh Context, before any input is processed."""
        self.initializer	= initializer
        return self

    def state( self, name ):
        """Open a new state, or re-open an existing one to append further rules."""
        self.current		= self.states.get( name )
        if self.current is None:
            self.current	= self.states[name] = State( name )
        if self.initial is None:
            self.initial	= name
        return self

    def opened( self ):
        if self.current is None:
            raise ConfigurationError( "No state declared; call .state( <name> ) before defining rules" )
        return self.current

    def actions( self, actions ):
        for act in actions:
            if not hasattr( act, '__call__' ):
                raise ConfigurationError( "State %r action must be callable, not: %r" % (
                    self.current.name, act ))
        return tuple( actions )

    def on( self, matcher, *actions ):
        """Append a rule executing the actions when the matcher matches; rules are tried in the order
        declared, and only the first matching rule's actions are executed."""
        current			= self.opened()
        wrapped			= self.wrapper( matcher )
        current.rules.append( Rule( wrapped, resolve( wrapped ), self.actions( actions )))
        return self

    def on_end( self, *actions ):
        """Set the actions executed when the input is exhausted (replacing any previous)."""
        current			= self.opened()
        current.ending		= self.actions( actions )
        return self

    def otherwise( self, *actions ):
        """Set the actions executed when no rule matches (replacing any previous)."""
        current			= self.opened()
        current.fallback	= self.actions( actions )
        return self

    def build( self, strict=False ):
        """Produce the Definition.  Transition/call targets are usually checked only when entered;
        if strict, they must all be defined now."""
        if self.initial is None:
            raise ConfigurationError( "State machine %s has no states" % ( self.name ))
        definition		= Definition( self.name, self.initial, self.states, self.initializer )
        if strict:
            undefined		= definition.undefined()
            if undefined:
                raise ConfigurationError( "State machine %s has undefined target state(s): %s" % (
                    self.name, ', '.join( repr( n ) for n in undefined )))
        log.detail( "%s: built w/ %d states; initial %r", self.name, len( self.states ), self.initial )
        return definition

#
# Run
#
#     Each pull of the next Token delivers any queued Token, or processes input items 'til at least
# one Token is queued.  When the input is exhausted, the active state's end actions run exactly
# once; after they (and any Tokens they produced) are consumed, the run is finished.
#
class Run( object ):
    def __init__( self, definition, source, faults=False ):
        self.definition		= definition
        self.source		= iter( source )
        self.faults		= faults
        self.context		= Context( definition.initial )
        self.exhausted		= False		# End actions done (or Fault); no more input processed
        self.fault		= None
        self._name_centered	= None
        definition.initialize( self.context )

    def __repr__( self ):
        return '<Run %s.%s%s>' % (
            self.definition.name, self.context.state, ' (finished)' if self.finished else '' )

    def name_centered( self ):
        if self._name_centered is None:
            self._name_centered	= misc.centeraxis(
                self.definition.name + '.', width=20, clip=True )
        return self._name_centered

    @property
    def finished( self ):
        return self.exhausted and not self.context.tokens

    def __iter__( self ):
        return self

    def __next__( self ):
        tokens			= self.context.tokens
        while not tokens:
            if self.exhausted:
                raise StopIteration
            self.step()
        return tokens.popleft()


    def step( self ):
        """Process the next input item (or the end of input) in the active state."""
        context			= self.context
        context.settle()
        try:
            try:
                item		= next( self.source )
            except StopIteration:
                item		= END
            context.item	= item
            context.position   += 1
            state		= self.definition.states.get( context.state )
            if state is None:
                raise UndefinedState( context.fault( "Undefined state %r" % ( context.state, )))
            if item is END:
                self.exhausted	= True
                actions		= state.ending
            else:
                actions		= state.select( context )
            if log.isEnabledFor( logging.TRACE ):
                log.trace( "%s %-10.10s #%3d %-6.6r: %s", self.name_centered(), context.state,
                           context.position, item, ', '.join( str( a ) for a in actions ))
            for act in actions:
                act( context )
        except Aborted as exc:
            self.failed( exc )
        except Exception as exc:
            # A defect in some action or matcher; no further progress can be made.
            self.exhausted	= True
            context.tokens.clear()
            log.warning( "%s failed at position %d (%r) w/ exception %r", self.name_centered(),
                         context.position, context.item, exc )
            raise
        else:
            if context.tokens and log.isEnabledFor( logging.DEBUG ):
                log.debug( "%s %-10.10s #%3d -> %s", self.name_centered(), context.state,
                           context.position, misc.lazystr( lambda: ', '.join(
                               repr( tok ) for tok in context.tokens )))
            if self.exhausted:
                log.detail( "%s done after %d items", self.name_centered(), context.position )

    def failed( self, exc ):
        """Terminate the run with the Aborted's Fault, discarding any undelivered output."""
        context			= self.context
        self.exhausted		= True
        self.fault		= exc.fault
        context.tokens.clear()
        context.buffer		= None
        log.info( "%s %s: %s", self.name_centered(), exc.__class__.__name__, exc.fault )
        if not self.faults:
            raise exc
        context.tokens.append( exc.fault )
