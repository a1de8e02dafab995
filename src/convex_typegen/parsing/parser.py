"""Parser for the TypeScript subset used by Convex schema and function files."""

from __future__ import annotations

from typing import Any

import ply.yacc as yacc

from convex_typegen.parsing.lexer import TsLexer
from convex_typegen.parsing.nodes import (
    ArrayExpression,
    ArrowFunction,
    BooleanLiteral,
    CallExpression,
    ExportDefaultDeclaration,
    ExportNamedDeclaration,
    ExportSpecifiers,
    FunctionDeclaration,
    Identifier,
    ImportDeclaration,
    ImportSpecifier,
    MemberExpression,
    MethodProperty,
    NullLiteral,
    NumericLiteral,
    ObjectExpression,
    ObjectProperty,
    Program,
    SpreadElement,
    StringLiteral,
    TemplateLiteral,
    TypeDeclaration,
    VariableDeclaration,
    VariableDeclarator,
)


class TsParser:
    """Parser for TypeScript module-level declarations.

    Only the top level of a module is modelled: imports, exports, variable,
    function, type and interface declarations, and the expression forms used
    to build validators. Function bodies, parameter lists and type
    annotations are consumed as balanced token runs and discarded.
    """

    tokens = TsLexer.tokens
    start = "program"

    def __init__(self) -> None:
        self.lexer = TsLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore

    # --- Program ---

    def p_program(self, p: yacc.YaccProduction) -> None:
        """program : statement_list"""
        p[0] = Program(body=tuple(p[1]), line=1)

    def p_program_empty(self, p: yacc.YaccProduction) -> None:
        """program : empty"""
        p[0] = Program(body=(), line=1)

    def p_statement_list_single(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement"""
        p[0] = [p[1]] if p[1] is not None else []

    def p_statement_list_multiple(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement_list statement"""
        p[0] = p[1]
        if p[2] is not None:
            p[0].append(p[2])

    def p_statement(self, p: yacc.YaccProduction) -> None:
        """statement : import_declaration
                     | export_declaration
                     | variable_declaration
                     | function_declaration
                     | type_declaration"""
        p[0] = p[1]

    def p_statement_empty(self, p: yacc.YaccProduction) -> None:
        """statement : SEMI"""
        p[0] = None

    # --- Imports ---

    def p_import_declaration(self, p: yacc.YaccProduction) -> None:
        """import_declaration : IMPORT import_clause FROM STRING"""
        p[0] = ImportDeclaration(source=p[4], specifiers=tuple(p[2]), line=p.lineno(1))

    def p_import_declaration_type(self, p: yacc.YaccProduction) -> None:
        """import_declaration : IMPORT TYPE import_clause FROM STRING"""
        p[0] = ImportDeclaration(source=p[5], specifiers=tuple(p[3]), line=p.lineno(1))

    def p_import_declaration_bare(self, p: yacc.YaccProduction) -> None:
        """import_declaration : IMPORT STRING"""
        p[0] = ImportDeclaration(source=p[2], line=p.lineno(1))

    def p_import_clause_default(self, p: yacc.YaccProduction) -> None:
        """import_clause : IDENTIFIER"""
        p[0] = [ImportSpecifier(imported="default", local=p[1], line=p.lineno(1))]

    def p_import_clause_named(self, p: yacc.YaccProduction) -> None:
        """import_clause : named_bindings"""
        p[0] = p[1]

    def p_import_clause_default_and_named(self, p: yacc.YaccProduction) -> None:
        """import_clause : IDENTIFIER COMMA named_bindings"""
        p[0] = [ImportSpecifier(imported="default", local=p[1], line=p.lineno(1))] + p[3]

    def p_import_clause_namespace(self, p: yacc.YaccProduction) -> None:
        """import_clause : STAR AS IDENTIFIER"""
        p[0] = [ImportSpecifier(imported="*", local=p[3], line=p.lineno(1))]

    def p_named_bindings(self, p: yacc.YaccProduction) -> None:
        """named_bindings : LBRACE RBRACE
                          | LBRACE specifier_list RBRACE
                          | LBRACE specifier_list COMMA RBRACE"""
        p[0] = p[2] if len(p) > 3 else []

    def p_specifier_list_single(self, p: yacc.YaccProduction) -> None:
        """specifier_list : specifier"""
        p[0] = [p[1]]

    def p_specifier_list_multiple(self, p: yacc.YaccProduction) -> None:
        """specifier_list : specifier_list COMMA specifier"""
        p[0] = p[1] + [p[3]]

    def p_specifier(self, p: yacc.YaccProduction) -> None:
        """specifier : module_name"""
        p[0] = ImportSpecifier(imported=p[1], local=p[1], line=p.lineno(1))

    def p_specifier_renamed(self, p: yacc.YaccProduction) -> None:
        """specifier : module_name AS module_name"""
        p[0] = ImportSpecifier(imported=p[1], local=p[3], line=p.lineno(2))

    def p_specifier_type(self, p: yacc.YaccProduction) -> None:
        """specifier : TYPE module_name"""
        p[0] = ImportSpecifier(imported=p[2], local=p[2], line=p.lineno(1))

    def p_specifier_type_renamed(self, p: yacc.YaccProduction) -> None:
        """specifier : TYPE module_name AS module_name"""
        p[0] = ImportSpecifier(imported=p[2], local=p[4], line=p.lineno(1))

    def p_module_name(self, p: yacc.YaccProduction) -> None:
        """module_name : IDENTIFIER
                       | DEFAULT
                       | STRING"""
        p[0] = p[1]

    # --- Exports ---

    def p_export_declaration(self, p: yacc.YaccProduction) -> None:
        """export_declaration : EXPORT variable_declaration
                              | EXPORT function_declaration
                              | EXPORT type_declaration"""
        p[0] = ExportNamedDeclaration(declaration=p[2], line=p.lineno(1))

    def p_export_default(self, p: yacc.YaccProduction) -> None:
        """export_declaration : EXPORT DEFAULT expression
                              | EXPORT DEFAULT function_declaration"""
        p[0] = ExportDefaultDeclaration(declaration=p[3], line=p.lineno(1))

    def p_export_specifiers(self, p: yacc.YaccProduction) -> None:
        """export_declaration : EXPORT named_bindings"""
        p[0] = ExportSpecifiers(specifiers=tuple(p[2]), line=p.lineno(1))

    def p_export_specifiers_from(self, p: yacc.YaccProduction) -> None:
        """export_declaration : EXPORT named_bindings FROM STRING"""
        p[0] = ExportSpecifiers(specifiers=tuple(p[2]), source=p[4], line=p.lineno(1))

    def p_export_star(self, p: yacc.YaccProduction) -> None:
        """export_declaration : EXPORT STAR FROM STRING"""
        p[0] = ExportSpecifiers(
            specifiers=(ImportSpecifier(imported="*", local="*"),),
            source=p[4],
            line=p.lineno(1),
        )

    def p_export_star_as(self, p: yacc.YaccProduction) -> None:
        """export_declaration : EXPORT STAR AS IDENTIFIER FROM STRING"""
        p[0] = ExportSpecifiers(
            specifiers=(ImportSpecifier(imported="*", local=p[4]),),
            source=p[6],
            line=p.lineno(1),
        )

    # --- Declarations ---

    def p_variable_declaration(self, p: yacc.YaccProduction) -> None:
        """variable_declaration : declaration_kind declarator_list"""
        kind, line = p[1]
        p[0] = VariableDeclaration(kind=kind, declarations=tuple(p[2]), line=line)

    def p_declaration_kind(self, p: yacc.YaccProduction) -> None:
        """declaration_kind : CONST
                            | LET
                            | VAR"""
        p[0] = (p[1], p.lineno(1))

    def p_declarator_list_single(self, p: yacc.YaccProduction) -> None:
        """declarator_list : declarator"""
        p[0] = [p[1]]

    def p_declarator_list_multiple(self, p: yacc.YaccProduction) -> None:
        """declarator_list : declarator_list COMMA declarator"""
        p[0] = p[1] + [p[3]]

    def p_declarator(self, p: yacc.YaccProduction) -> None:
        """declarator : IDENTIFIER EQUALS expression"""
        p[0] = VariableDeclarator(name=p[1], init=p[3], line=p.lineno(1))

    def p_declarator_annotated(self, p: yacc.YaccProduction) -> None:
        """declarator : IDENTIFIER COLON type_expression EQUALS expression"""
        p[0] = VariableDeclarator(name=p[1], init=p[5], line=p.lineno(1))

    def p_declarator_uninitialized(self, p: yacc.YaccProduction) -> None:
        """declarator : IDENTIFIER
                      | IDENTIFIER COLON type_expression"""
        p[0] = VariableDeclarator(name=p[1], line=p.lineno(1))

    def p_function_declaration(self, p: yacc.YaccProduction) -> None:
        """function_declaration : function_head LPAREN balanced RPAREN block
                                | function_head LPAREN balanced RPAREN COLON type_annotation block"""
        name, is_async, line = p[1]
        p[0] = FunctionDeclaration(name=name, is_async=is_async, line=line)

    def p_function_head(self, p: yacc.YaccProduction) -> None:
        """function_head : FUNCTION IDENTIFIER
                         | FUNCTION IDENTIFIER type_arguments
                         | FUNCTION"""
        p[0] = (p[2] if len(p) > 2 else None, False, p.lineno(1))

    def p_function_head_async(self, p: yacc.YaccProduction) -> None:
        """function_head : ASYNC FUNCTION IDENTIFIER
                         | ASYNC FUNCTION IDENTIFIER type_arguments
                         | ASYNC FUNCTION"""
        p[0] = (p[3] if len(p) > 3 else None, True, p.lineno(1))

    def p_type_declaration_alias(self, p: yacc.YaccProduction) -> None:
        """type_declaration : TYPE IDENTIFIER EQUALS type_expression
                            | TYPE IDENTIFIER type_arguments EQUALS type_expression"""
        p[0] = TypeDeclaration(name=p[2], line=p.lineno(1))

    def p_type_declaration_interface(self, p: yacc.YaccProduction) -> None:
        """type_declaration : INTERFACE IDENTIFIER block
                            | INTERFACE IDENTIFIER type_annotation block"""
        p[0] = TypeDeclaration(name=p[2], line=p.lineno(1))

    # --- Expressions ---

    def p_expression(self, p: yacc.YaccProduction) -> None:
        """expression : postfix_expression
                      | arrow_function"""
        p[0] = p[1]

    def p_expression_as(self, p: yacc.YaccProduction) -> None:
        """expression : postfix_expression AS CONST
                      | postfix_expression AS type_expression"""
        p[0] = p[1]

    def p_expression_satisfies(self, p: yacc.YaccProduction) -> None:
        """expression : postfix_expression SATISFIES type_expression"""
        p[0] = p[1]

    def p_expression_negative(self, p: yacc.YaccProduction) -> None:
        """expression : MINUS NUMBER"""
        p[0] = NumericLiteral(value=-p[2], line=p.lineno(1))

    def p_postfix_primary(self, p: yacc.YaccProduction) -> None:
        """postfix_expression : primary_expression"""
        p[0] = p[1]

    def p_postfix_member(self, p: yacc.YaccProduction) -> None:
        """postfix_expression : postfix_expression DOT IDENTIFIER"""
        p[0] = MemberExpression(object=p[1], property=p[3], line=p.lineno(2))

    def p_postfix_call(self, p: yacc.YaccProduction) -> None:
        """postfix_expression : postfix_expression LPAREN RPAREN
                              | postfix_expression LPAREN argument_list RPAREN
                              | postfix_expression LPAREN argument_list COMMA RPAREN"""
        args = tuple(p[3]) if len(p) > 4 else ()
        p[0] = CallExpression(callee=p[1], arguments=args, line=p.lineno(2))

    def p_primary_identifier(self, p: yacc.YaccProduction) -> None:
        """primary_expression : IDENTIFIER"""
        p[0] = Identifier(name=p[1], line=p.lineno(1))

    def p_primary_string(self, p: yacc.YaccProduction) -> None:
        """primary_expression : STRING"""
        p[0] = StringLiteral(value=p[1], line=p.lineno(1))

    def p_primary_template(self, p: yacc.YaccProduction) -> None:
        """primary_expression : TEMPLATE"""
        p[0] = TemplateLiteral(value=p[1], line=p.lineno(1))

    def p_primary_number(self, p: yacc.YaccProduction) -> None:
        """primary_expression : NUMBER"""
        p[0] = NumericLiteral(value=p[1], line=p.lineno(1))

    def p_primary_boolean(self, p: yacc.YaccProduction) -> None:
        """primary_expression : TRUE
                              | FALSE"""
        p[0] = BooleanLiteral(value=p[1] == "true", line=p.lineno(1))

    def p_primary_null(self, p: yacc.YaccProduction) -> None:
        """primary_expression : NULL"""
        p[0] = NullLiteral(line=p.lineno(1))

    def p_primary_literal(self, p: yacc.YaccProduction) -> None:
        """primary_expression : object_literal
                              | array_literal"""
        p[0] = p[1]

    def p_argument_list_single(self, p: yacc.YaccProduction) -> None:
        """argument_list : argument"""
        p[0] = [p[1]]

    def p_argument_list_multiple(self, p: yacc.YaccProduction) -> None:
        """argument_list : argument_list COMMA argument"""
        p[0] = p[1] + [p[3]]

    def p_argument(self, p: yacc.YaccProduction) -> None:
        """argument : expression"""
        p[0] = p[1]

    def p_argument_spread(self, p: yacc.YaccProduction) -> None:
        """argument : ELLIPSIS expression"""
        p[0] = SpreadElement(argument=p[2], line=p.lineno(1))

    def p_array_literal(self, p: yacc.YaccProduction) -> None:
        """array_literal : LBRACKET RBRACKET
                         | LBRACKET argument_list RBRACKET
                         | LBRACKET argument_list COMMA RBRACKET"""
        elements = tuple(p[2]) if len(p) > 3 else ()
        p[0] = ArrayExpression(elements=elements, line=p.lineno(1))

    # --- Object literals ---

    def p_object_literal(self, p: yacc.YaccProduction) -> None:
        """object_literal : LBRACE RBRACE
                          | LBRACE property_list RBRACE
                          | LBRACE property_list COMMA RBRACE"""
        properties = tuple(p[2]) if len(p) > 3 else ()
        p[0] = ObjectExpression(properties=properties, line=p.lineno(1))

    def p_property_list_single(self, p: yacc.YaccProduction) -> None:
        """property_list : property"""
        p[0] = [p[1]]

    def p_property_list_multiple(self, p: yacc.YaccProduction) -> None:
        """property_list : property_list COMMA property"""
        p[0] = p[1] + [p[3]]

    def p_property(self, p: yacc.YaccProduction) -> None:
        """property : property_key COLON expression"""
        key, line = p[1]
        p[0] = ObjectProperty(key=key, value=p[3], line=line)

    def p_property_shorthand(self, p: yacc.YaccProduction) -> None:
        """property : shorthand_name"""
        name, line = p[1]
        p[0] = ObjectProperty(
            key=name, value=Identifier(name=name, line=line), shorthand=True, line=line
        )

    def p_property_spread(self, p: yacc.YaccProduction) -> None:
        """property : ELLIPSIS expression"""
        p[0] = SpreadElement(argument=p[2], line=p.lineno(1))

    def p_property_method(self, p: yacc.YaccProduction) -> None:
        """property : property_key LPAREN balanced RPAREN block
                    | property_key LPAREN balanced RPAREN COLON type_annotation block"""
        key, line = p[1]
        p[0] = MethodProperty(key=key, line=line)

    def p_property_async_method(self, p: yacc.YaccProduction) -> None:
        """property : ASYNC property_key LPAREN balanced RPAREN block
                    | ASYNC property_key LPAREN balanced RPAREN COLON type_annotation block"""
        key, line = p[2]
        p[0] = MethodProperty(key=key, line=line)

    def p_property_key(self, p: yacc.YaccProduction) -> None:
        """property_key : IDENTIFIER
                        | STRING
                        | keyword_name"""
        p[0] = (p[1], p.lineno(1))

    def p_property_key_number(self, p: yacc.YaccProduction) -> None:
        """property_key : NUMBER"""
        value = p[1]
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        p[0] = (str(value), p.lineno(1))

    def p_keyword_name(self, p: yacc.YaccProduction) -> None:
        """keyword_name : IMPORT
                        | EXPORT
                        | FROM
                        | DEFAULT
                        | CONST
                        | LET
                        | VAR
                        | FUNCTION
                        | AS
                        | TYPE
                        | INTERFACE
                        | SATISFIES
                        | TRUE
                        | FALSE
                        | NULL"""
        p[0] = p[1]

    def p_shorthand_name(self, p: yacc.YaccProduction) -> None:
        """shorthand_name : IDENTIFIER
                          | TYPE
                          | FROM
                          | AS
                          | SATISFIES"""
        p[0] = (p[1], p.lineno(1))

    # --- Arrow functions ---

    def p_arrow_function(self, p: yacc.YaccProduction) -> None:
        """arrow_function : arrow_parameters ARROW arrow_body
                          | type_arguments arrow_parameters ARROW arrow_body"""
        p[0] = ArrowFunction(is_async=False, line=p.lineno(len(p) - 2))

    def p_arrow_function_async(self, p: yacc.YaccProduction) -> None:
        """arrow_function : ASYNC arrow_parameters ARROW arrow_body
                          | ASYNC type_arguments arrow_parameters ARROW arrow_body"""
        p[0] = ArrowFunction(is_async=True, line=p.lineno(1))

    def p_arrow_parameters(self, p: yacc.YaccProduction) -> None:
        """arrow_parameters : IDENTIFIER
                            | LPAREN balanced RPAREN
                            | LPAREN balanced RPAREN COLON return_type"""

    def p_return_type(self, p: yacc.YaccProduction) -> None:
        """return_type : return_type_token
                       | return_type return_type_token"""

    def p_return_type_token(self, p: yacc.YaccProduction) -> None:
        """return_type_token : type_token
                             | LBRACE balanced RBRACE"""

    def p_arrow_body(self, p: yacc.YaccProduction) -> None:
        """arrow_body : block
                      | expression_tokens"""

    def p_expression_tokens(self, p: yacc.YaccProduction) -> None:
        """expression_tokens : expression_token
                             | expression_tokens expression_token
                             | expression_tokens block"""

    def p_expression_token(self, p: yacc.YaccProduction) -> None:
        """expression_token : IDENTIFIER
                            | STRING
                            | TEMPLATE
                            | NUMBER
                            | TRUE
                            | FALSE
                            | NULL
                            | DOT
                            | ELLIPSIS
                            | EQUALS
                            | ARROW
                            | MINUS
                            | STAR
                            | LT
                            | GT
                            | OPERATOR
                            | COLON
                            | AS
                            | SATISFIES
                            | FROM
                            | DEFAULT
                            | LPAREN balanced RPAREN
                            | LBRACKET balanced RBRACKET"""

    # --- Opaque token runs ---

    def p_block(self, p: yacc.YaccProduction) -> None:
        """block : LBRACE balanced RBRACE"""

    def p_balanced(self, p: yacc.YaccProduction) -> None:
        """balanced : balanced balanced_item
                    | empty"""

    def p_balanced_item(self, p: yacc.YaccProduction) -> None:
        """balanced_item : IDENTIFIER
                         | STRING
                         | TEMPLATE
                         | NUMBER
                         | COMMA
                         | COLON
                         | SEMI
                         | DOT
                         | ELLIPSIS
                         | EQUALS
                         | ARROW
                         | MINUS
                         | STAR
                         | LT
                         | GT
                         | OPERATOR
                         | IMPORT
                         | EXPORT
                         | FROM
                         | DEFAULT
                         | CONST
                         | LET
                         | VAR
                         | FUNCTION
                         | ASYNC
                         | AS
                         | TYPE
                         | INTERFACE
                         | SATISFIES
                         | TRUE
                         | FALSE
                         | NULL
                         | LPAREN balanced RPAREN
                         | LBRACE balanced RBRACE
                         | LBRACKET balanced RBRACKET"""

    def p_type_annotation(self, p: yacc.YaccProduction) -> None:
        """type_annotation : type_token
                           | type_annotation type_token"""

    def p_type_token(self, p: yacc.YaccProduction) -> None:
        """type_token : IDENTIFIER
                      | STRING
                      | NUMBER
                      | NULL
                      | TRUE
                      | FALSE
                      | DOT
                      | MINUS
                      | OPERATOR
                      | type_arguments
                      | LPAREN balanced RPAREN
                      | LBRACKET balanced RBRACKET"""

    def p_type_arguments(self, p: yacc.YaccProduction) -> None:
        """type_arguments : LT type_argument_list GT"""

    def p_type_argument_list(self, p: yacc.YaccProduction) -> None:
        """type_argument_list : type_argument_list type_argument_item
                              | empty"""

    def p_type_argument_item(self, p: yacc.YaccProduction) -> None:
        """type_argument_item : type_expression_token
                              | COMMA
                              | EQUALS"""

    def p_type_expression(self, p: yacc.YaccProduction) -> None:
        """type_expression : type_expression_token
                           | type_expression type_expression_token"""

    def p_type_expression_token(self, p: yacc.YaccProduction) -> None:
        """type_expression_token : type_token
                                 | TEMPLATE
                                 | STAR
                                 | COLON
                                 | ARROW
                                 | ELLIPSIS
                                 | LBRACE balanced RBRACE"""

    def p_empty(self, p: yacc.YaccProduction) -> None:
        """empty :"""
        pass

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (line {p.lineno})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse(self, data: str) -> Program:
        """Parse a TypeScript module and return its Program node."""
        if self.parser is None:
            self.build(debug=False, write_tables=False, errorlog=yacc.NullLogger())

        self.lexer.input(data)
        return self.parser.parse(data, lexer=self.lexer.lexer)
