# wavecommon

Shared building blocks for services: application errors with gRPC-style status
codes, retries with backoff, access tokens, environment configuration, logging,
database helpers, RabbitMQ messaging, Consul registration and Redis clients.
It is a library; import the modules you need. It has no command-line entry point.

## Modules

- `wavecommon.abstractions`: abstract interfaces `Requestable`, `Responseable`,
  `Closable` and `Server`, with `make_request(cls, request)` and
  `make_response(response)`.
- `wavecommon.errors`: `AppError` carries a `Code` (the gRPC status codes), an
  optional wrapped error and a message. `str(err)` includes the wrapped error;
  `err.safe_error()` leaves hidden inner errors out. Builders: `not_found`,
  `already_exists`, `bad_request`, `bad_request_hidden`, `validation_error`,
  `unauthorized`, `unauthorized_hidden`, `forbidden`, `version_mismatch`,
  `internal` (with incident id and stack trace), `internal_without_stack_trace`,
  `wrap_internal` and `ensure_internal`. `ValidationFailure` and `Violation`
  describe failed validation rules. `http_status_from_code` maps a code to an
  HTTP status.
- `wavecommon.retry`: `Retry` calls a function until it succeeds, with
  exponential backoff and jitter set by a `RetryConfig` (delays in seconds).
  Chainable setters: `with_attempts`, `with_delay`, `with_max_delay`,
  `with_max_jitter`, `with_on_retry`, `with_retry_if`, `with_delay_type`.
  The last error is re-raised when it gives up.
- `wavecommon.tokens`: `TokenService` signs HS256 access tokens
  (`generate_token`), makes URL-safe refresh tokens (`generate_refresh_token`)
  and six-digit codes (`generate_code`). `AccessClaims` converts to and from a
  JWT payload. `AuthLevel` lists the user roles.
- `wavecommon.config`: `GatewayConfig` and `ServiceConfig` dataclasses filled by
  `load(cls, environ=None)` from environment variables (and a `.env` file in the
  working directory when no mapping is given). `parse_duration` reads values
  such as `15s` or `1h30m`.
- `wavecommon.logger`: `Logger(local, level)` logs to standard output, readable
  when local and JSON otherwise. `level_from_string` and `hclog_level` map level
  names.
- `wavecommon.helpers`: `generate_slug`, `extract_from_metadata`,
  `to_title_case`, `to_title_case_words`.
- `wavecommon.slices`: `map_index`, `to_map`, `no_change`.
- `wavecommon.dbx_adjust`: `adjust_relation` diffs two sets of keyed rows and
  calls add/remove callbacks; `reassign_positions` closes gaps in position
  numbers and calls an update callback.
- `wavecommon.dbx_errors`: `is_unique_violation`, `is_foreign_key_violation`,
  `not_valid_enum_type` (by SQLSTATE and constraint name) and `is_no_rows`
  with `NoRowsError`.
- `wavecommon.dbx_tx`: `with_transaction` (a context manager making a
  transaction current), `from_context`, `in_transaction` (commit on return,
  rollback on error), `queue_query` and the `Queryable` protocol.
- `wavecommon.netutil`: `dial`, `dial_timeout`, `dial_retry` (retries while the
  connection is refused), `check_port_available`, `find_free_port`,
  `reserve_port`.
- `wavecommon.messaging`: RabbitMQ `Publisher` and `Consumer`, with the options
  `with_exchange`, `with_queue` and `with_queue_and_bind` applied when the
  channel opens. Both are context managers.
- `wavecommon.http_errors`: `error_response(err)` gives the HTTP status and
  `HTTPError` body for an error; `make_error_handler(logger)` returns a handler
  producing `(status, headers, body)` and logging internal errors.
- `wavecommon.consul`: `Consul` registers a service with a Consul agent
  (`register_service`), plans watches of other services (`watch_service`
  returns a queue; the `WatchPlan` appended to `consul.plans` starts with
  `plan.run(errors_queue)`) and `stop` ends the watches and deregisters.
  `ConsulClient` is the small HTTP client underneath; `ServiceEntry` is one
  healthy instance. Options: `with_service_check`, `with_tag`,
  `with_check_interval`, `with_check_timeout`, `with_check_deregister_timeout`,
  `with_check_ttl`, `with_self_check_timeout`.
- `wavecommon.redis_client`: `new_redis_client(url, options=None)` returns a
  Redis client that answered a ping; `RedisOptions` and `new_redis_options`
  hold its settings.

## Example

```python
from datetime import timedelta

from wavecommon.errors import http_status_from_code, not_found
from wavecommon.retry import Retry, RetryConfig
from wavecommon.tokens import TokenService

err = not_found("user", "id", 42)
print(str(err))                          # user id: 42 not found
print(http_status_from_code(err.code))   # 404

service = TokenService("secret", timedelta(minutes=15), timedelta(days=7))
access = service.generate_token(42, "student")

retry = Retry(RetryConfig()).with_attempts(3).with_retry_if(
    lambda e: isinstance(e, ConnectionError)
)
retry.do(lambda: None)
```

## What it does not do

The package does not create PostgreSQL connection pools, gRPC clients or name
resolvers, tracing exporters or Prometheus metrics and middleware. The database
helpers work with any connection or transaction object you pass in.

## Tests

```
pip install -e .[test]
pytest
```