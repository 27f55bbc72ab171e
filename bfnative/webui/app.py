from __future__ import annotations

from typing import List

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field, validator

from bfnative.backend import LLVMBackend, llvm_version
from bfnative.codegen import DEFAULT_HEAP_SIZE
from bfnative.config import DEFAULT_OPT_LEVEL, MAX_HEAP_SIZE, CompileOptions
from bfnative.errors import BackendError, ConfigurationError, SourceError
from bfnative.interpreter import BrainfuckInterpreter, StepLimitExceeded
from bfnative.toolchain import translate

DEFAULT_MAX_STEPS = 1_000_000


def _string_to_input_bytes(data: str) -> List[int]:
    return list(data.encode("utf-8"))


class CompileRequest(BaseModel):
    code: str = ""
    name: str = "main"
    heap_size: int = Field(default=DEFAULT_HEAP_SIZE, ge=1, le=MAX_HEAP_SIZE)
    opt_level: int = Field(default=DEFAULT_OPT_LEVEL, ge=0, le=3)
    optimize: bool = False

    @validator("name")
    def validate_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("module name must not be empty")
        return value


class CompileResponse(BaseModel):
    module_name: str
    ir: str
    optimized: bool


class InterpretRequest(BaseModel):
    code: str = ""
    input: str = ""
    heap_size: int = Field(default=DEFAULT_HEAP_SIZE, ge=1, le=MAX_HEAP_SIZE)
    max_steps: int = Field(default=DEFAULT_MAX_STEPS, ge=1)


class InterpretResponse(BaseModel):
    output: str
    output_bytes: List[int]
    steps: int


class HealthResponse(BaseModel):
    status: str
    llvm_version: str


def create_app() -> FastAPI:
    app = FastAPI(title="bfnative compile API", version="0.1.0")

    @app.get("/api/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok", llvm_version=llvm_version())

    @app.post("/api/compile", response_model=CompileResponse)
    def compile_source(payload: CompileRequest) -> CompileResponse:
        try:
            options = CompileOptions.create(heap_size=payload.heap_size, opt_level=payload.opt_level)
            backend = LLVMBackend(options.opt_level)
            module = translate(payload.code, options, name=payload.name, backend=backend)
            text = backend.optimize(module) if payload.optimize else str(module)
        except (ConfigurationError, SourceError) as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=str(exc),
            ) from exc
        except BackendError as exc:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(exc),
            ) from exc
        return CompileResponse(module_name=payload.name, ir=text, optimized=payload.optimize)

    @app.post("/api/interpret", response_model=InterpretResponse)
    def interpret(payload: InterpretRequest) -> InterpretResponse:
        interpreter = BrainfuckInterpreter(tape_length=payload.heap_size)
        try:
            output = interpreter.run(
                payload.code,
                input_data=_string_to_input_bytes(payload.input),
                max_steps=payload.max_steps,
            )
        except SourceError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=str(exc),
            ) from exc
        except (StepLimitExceeded, IndexError) as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=str(exc),
            ) from exc
        return InterpretResponse(
            output=output.decode("latin-1"),
            output_bytes=list(output),
            steps=interpreter.steps,
        )

    return app


__all__ = ["create_app"]
