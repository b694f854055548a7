"""
Detection session: mode/running state machine, errors and snapshot history.

Import submodules directly (session.machine, session.errors, ...); this
package keeps no eager imports so lower layers can depend on session.errors.
"""
