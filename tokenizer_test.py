import logging
import re

import greenery
import pytest

import statelex
from statelex import Token, accept, emit, transition, call, ret, push, pop, abort

logging.basicConfig( **statelex.log_cfg )
log				= logging.getLogger()


def colors( escaped=False ):
    """Text with [color] tags; optionally, a \\ escapes the next character."""
    builder			= statelex.Tokenizer( 'colors' ) \
        .state( 'text' ) \
            .on( '[', emit( 'text' ), transition( 'color' )) \
            .on_end( emit( 'text' )) \
            .otherwise( accept() ) \
        .state( 'color' ) \
            .on( ']', emit( 'color' ), transition( 'text' )) \
            .on_end( abort( "Unclosed color tag" )) \
            .otherwise( accept() )
    if escaped:
        builder.state( 'text' ) \
                   .on( '\\', transition( 'escaped_char' )) \
               .state( 'escaped_char' ) \
                   .otherwise( accept(), transition( 'text' ))
    return builder.build( strict=True )


def test_delimited():
    assert list( colors().run( "a[b]c" )) == [
        Token( 'text', 'a' ), Token( 'color', 'b' ), Token( 'text', 'c' ) ]

    # An escaped [ is just text
    assert list( colors( escaped=True ).run( "a\\[b]c" )) == [
        Token( 'text', 'a[b]c' ) ]
    assert list( colors( escaped=True ).run( "a\\\\[b]c" )) == [
        Token( 'text', 'a\\' ), Token( 'color', 'b' ), Token( 'text', 'c' ) ]


def test_unclosed():
    run				= colors().run( "a[b" )
    tokens			= []
    with pytest.raises( statelex.Aborted ) as excinfo:
        for token in run:
            tokens.append( token )
    assert tokens == [ Token( 'text', 'a' ) ]
    fault			= excinfo.value.fault
    assert fault.message == "Unclosed color tag"
    assert fault.position == 3
    assert fault.item is statelex.END
    assert str( excinfo.value ) == "Unclosed color tag at position 3 (END)"
    assert run.context.buffer is None

    assert list( colors().run( "a[b", faults=True )) == [
        Token( 'text', 'a' ), statelex.Fault( "Unclosed color tag", 3, statelex.END ) ]


def test_empty():
    """Empty input produces just the Tokens from the initial state's end actions."""
    run				= colors().run( "" )
    assert next( run ) == Token( 'text', '' )
    for _ in range( 3 ):
        with pytest.raises( StopIteration ):
            next( run )
    assert run.context.position == 0


def test_accept_end():
    """An accept at the end of input adds nothing to the buffer."""
    words			= statelex.Tokenizer( 'words' ) \
        .state( 'word' ) \
            .on( ' ', accept(), emit( 'word' )) \
            .on_end( accept(), emit( 'word' )) \
            .otherwise( accept() ) \
        .build()
    assert list( words.run( "ab c" )) == [ Token( 'word', 'ab ' ), Token( 'word', 'c' ) ]
    assert list( words.run( "" )) == [ Token( 'word', '' ) ]


def test_escape_call():
    """A reusable escape state, called from multiple states and returning to its caller."""
    quoted			= statelex.Tokenizer() \
        .state( 'text' ) \
            .on( '\\', call( 'escape' )) \
            .on( re.compile( '["\']' ), emit( 'text' ), push(), transition( 'quoted' )) \
            .on_end( emit( 'text' )) \
            .otherwise( accept() ) \
        .state( 'quoted' ) \
            .on( '\\', call( 'escape' )) \
            .on( pop(), emit( 'string' ), transition( 'text' )) \
            .on_end( abort( "Unterminated string" )) \
            .otherwise( accept() ) \
        .state( 'escape' ) \
            .on( 'n', ( lambda context: setattr( context, 'buffer', context.buffer + '\n' )), ret() ) \
            .on_end( abort( "Unterminated escape" )) \
            .otherwise( accept(), ret() ) \
        .build( strict=True )

    run				= quoted.run( 'say "it\'s" or \'a \\"b\\" c\\n\'\\\\' )
    assert list( run ) == [
        Token( 'text', 'say ' ),
        Token( 'string', "it's" ),
        Token( 'text', ' or ' ),
        Token( 'string', 'a "b" c\n' ),
        Token( 'text', '\\' ),
    ]
    assert run.context.values == []
    assert run.context.calls == []

    with pytest.raises( statelex.Aborted ) as excinfo:
        list( quoted.run( "'x\"" ))
    assert excinfo.value.fault == ( "Unterminated string", 3, statelex.END )


def test_pop():
    """The pop matcher only matches (and removes) the most recently pushed item."""
    context			= statelex.Context( 's' )
    matcher			= pop()
    context.item		= '"'
    assert not matcher( context )
    context.values		= [ '"', "'" ]
    assert not matcher( context )
    assert context.values == [ '"', "'" ]
    context.item		= "'"
    assert matcher( context )
    assert context.values == [ '"' ]
    assert not matcher( context )
    context.item		= '"'
    assert matcher( context )
    assert context.values == []


def test_emitter():
    """Values of selected Token types are transformed by a chain of evaluators."""
    numbers			= statelex.Emitter() \
        .on( 'number', int, lambda n: n * 2 )
    adder			= statelex.Tokenizer( 'adder' ) \
        .state( 'number' ) \
            .on( statelex.Pattern( '[0-9]' ), accept() ) \
            .on( '+', numbers.emit( 'number' ), accept(), numbers.emit( 'operator' )) \
            .on_end( numbers.emit( 'number' )) \
            .otherwise( abort( "Expected a digit" )) \
        .build()
    assert list( adder.run( "12+5" )) == [
        Token( 'number', 24 ), Token( 'operator', '+' ), Token( 'number', 10 ) ]

    # Evaluators are found as each Token is emitted
    numbers.on( 'operator', { '+': 'plus' }.get )
    assert list( adder.run( "1+1" )) == [
        Token( 'number', 2 ), Token( 'operator', 'plus' ), Token( 'number', 2 ) ]

    with pytest.raises( statelex.Aborted ) as excinfo:
        list( adder.run( "1+x" ))
    assert str( excinfo.value ) == "Expected a digit at position 2 ('x')"

    # A defect in an evaluator isn't a Fault; it simply terminates the run
    run				= adder.run( "+" )
    with pytest.raises( ValueError ):
        next( run )
    assert run.finished


def test_patterns():
    """Compiled re patterns search each item; regular expressions (via greenery) must match it all."""
    vowels			= statelex.Tokenizer() \
        .state( 'text' ) \
            .on( re.compile( '[aeiou]', re.I ), emit( 'consonants' ), accept(), emit( 'vowel' )) \
            .on( statelex.Pattern( '[ \t]' ), emit( 'consonants' )) \
            .on_end( emit( 'consonants' )) \
            .otherwise( accept() ) \
        .build()
    assert list( vowels.run( "bAt cr" )) == [
        Token( 'consonants', 'b' ), Token( 'vowel', 'A' ),
        Token( 'consonants', 't' ), Token( 'consonants', 'cr' ) ]

    for pattern in ( '[xyz]', greenery.parse( '[xyz]' ), re.compile( '[xyz]' )):
        predicate		= statelex.Pattern( pattern ).predicate()
        context			= statelex.Context( 's' )
        context.item		= 'y'
        assert predicate( context )
        context.item		= 'a'
        assert not predicate( context )

    assert str( statelex.Pattern( re.compile( '[xyz]' ))) == '/[xyz]/'
    with pytest.raises( statelex.ConfigurationError ):
        statelex.Pattern( 42 )

    # A tokenizer's str matchers are always literal
    literal			= statelex.Tokenizer() \
        .state( 's' ) \
            .on( '.', accept(), emit( 'dot' )) \
        .build()
    assert list( literal.run( "a.b" )) == [ Token( 'dot', '.' ) ]
