"""Step-by-step execution for multi-stage resolution pipelines."""

from __future__ import annotations

from typing import Iterable, Callable, Any
from abc import abstractmethod
import logging

from colorama import Fore, Style

logger = logging.getLogger(__name__)


class PipelineMixin:
    """Mixin for classes that run a fixed sequence of named steps.

    Each step receives the previous step's result. A failing step is reported
    and its exception re-raised unchanged.

    Usage:
        class MyPipeline(PipelineMixin):
            NAME = 'Attractions'

            def _load_pipeline(self):
                return [
                    ('Step 1', self.step1_method, {}),
                    ('Step 2', self.step2_method, {'param': value}),
                ]
    """

    NAME: str = 'Pipeline'

    @abstractmethod
    def _load_pipeline(self, **kwargs: Any) -> Iterable[tuple[str, Callable, dict[str, Any]]]:
        """Define the pipeline steps.

        Returns:
            List of tuples: (step_name, function, kwargs)
        """
        ...

    def _execute_pipeline(self, initial: Any = None, progress: bool = True, **pipeline_kwargs: Any) -> Any:
        """Run every step in order and return the final result.

        Args:
            initial: Value passed to the first step
            progress: Whether to print progress messages (default: True)
            **pipeline_kwargs: Additional parameters passed to _load_pipeline()
        """
        result = initial
        for name, func, kwargs in self._load_pipeline(**pipeline_kwargs):
            try:
                result = func(result, **kwargs)
            except Exception as e:
                self._log_step_failure(name, e, progress)
                raise
            self._log_step_success(name, progress)

        return result

    def _step_line(self, step_name: str) -> str:
        max_len = len('Select Best Neighborhood')  # Longest step name
        padding = max(1, max_len - len(step_name) + 4)
        return f'{self.NAME} -- {step_name} {"-" * padding}>'

    def _log_step_success(self, step_name: str, progress: bool) -> None:
        logger.debug(f'{self.NAME}: step "{step_name}" complete')
        if progress:
            print(f'{self._step_line(step_name)} {Fore.GREEN}Complete{Style.RESET_ALL}')

    def _log_step_failure(self, step_name: str, error: Exception, progress: bool) -> None:
        logger.error(f'{self.NAME}: step "{step_name}" failed: {error}')
        if progress:
            print(f'{self._step_line(step_name)} {Fore.RED}Failed{Style.RESET_ALL}: {error}')
