"""
Trade sinks - receivers for the records a session produces.

The engine hands every execution and unexecuted record to a sink; these
implementations collect them in memory, write them as text lines, or fan
them out to several other sinks.
"""

from typing import List, Sequence, TextIO

from clearing.core.trade import (
    ExecutionRecord,
    SessionRecord,
    TradeSink,
    UnexecutedRecord,
)


class RecordCollector:
    """Append-only in-memory sink."""
    
    def __init__(self):
        self.records: List[SessionRecord] = []
    
    def emit(self, record: SessionRecord) -> None:
        self.records.append(record)
    
    @property
    def executions(self) -> List[ExecutionRecord]:
        return [r for r in self.records if isinstance(r, ExecutionRecord)]
    
    @property
    def unexecuted(self) -> List[UnexecutedRecord]:
        return [r for r in self.records if isinstance(r, UnexecutedRecord)]
    
    def lines(self) -> List[str]:
        """Records rendered as output-file lines, in emission order."""
        return [record.to_line() for record in self.records]
    
    def __len__(self) -> int:
        return len(self.records)


class StreamSink:
    """
    Writes each record as one line of text.
    
    Args:
        stream: Open text stream (file, stdout, StringIO)
    """
    
    def __init__(self, stream: TextIO):
        self.stream = stream
        self.lines_written = 0
    
    def emit(self, record: SessionRecord) -> None:
        self.stream.write(record.to_line() + "\n")
        self.lines_written += 1


class FanoutSink:
    """Forwards every record to each wrapped sink in order."""
    
    def __init__(self, sinks: Sequence[TradeSink]):
        self.sinks = list(sinks)
    
    def emit(self, record: SessionRecord) -> None:
        for sink in self.sinks:
            sink.emit(record)


__all__ = ["TradeSink", "RecordCollector", "StreamSink", "FanoutSink"]
