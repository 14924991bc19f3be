"""Exception conversion helpers."""

import traceback

from .models import ExceptionInfo, StackFrameInfo

EXCEPTION_MAX_FRAMES = 32768
EXCEPTION_MAX_MESSAGE_LENGTH = 32768


def _type_name(exception: BaseException) -> str:
    cls = type(exception)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def _next_in_chain(exception: BaseException) -> BaseException | None:
    if exception.__cause__ is not None:
        return exception.__cause__
    if exception.__suppress_context__:
        return None
    return exception.__context__


def _parse_stack(
    exception: BaseException, max_frames: int
) -> tuple[list[StackFrameInfo] | None, bool]:
    # walk_tb yields outermost first; level 0 is where the exception was raised
    frames = list(traceback.walk_tb(exception.__traceback__))
    if not frames:
        return None, True

    frames.reverse()
    parsed = []
    for level, (frame, line) in enumerate(frames[:max_frames]):
        code = frame.f_code
        parsed.append(
            StackFrameInfo(
                assembly=frame.f_globals.get("__name__", ""),
                level=level,
                line=line or 0,
                method=getattr(code, "co_qualname", code.co_name),
                file_name=code.co_filename or None,
            )
        )

    return parsed, len(frames) <= max_frames


def convert_exception(
    exception: BaseException,
    max_frames: int = EXCEPTION_MAX_FRAMES,
    max_message_length: int = EXCEPTION_MAX_MESSAGE_LENGTH,
) -> list[ExceptionInfo]:
    """Linearize an exception and its causes, outermost first.

    Ids are numbered from 1; each entry's outer_id is the id of the exception
    it caused, 0 for the outermost one.
    """
    result: list[ExceptionInfo] = []
    seen: set[int] = set()
    outer_id = 0
    current: BaseException | None = exception

    while current is not None and id(current) not in seen:
        seen.add(id(current))

        message = str(current).replace("\r\n", " ")[:max_message_length]
        parsed_stack, has_full_stack = _parse_stack(current, max_frames)

        exception_id = len(result) + 1
        result.append(
            ExceptionInfo(
                id=exception_id,
                outer_id=outer_id,
                type_name=_type_name(current),
                message=message,
                has_full_stack=has_full_stack,
                parsed_stack=parsed_stack,
            )
        )

        outer_id = exception_id
        current = _next_in_chain(current)

    return result
