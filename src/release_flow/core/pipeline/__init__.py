# src/release_flow/core/pipeline/__init__.py
"""
# Pipeline Core: Release Flow

Contratos canônicos e estruturas fundamentais das runs.

## Componentes

- **types**: `StepKind`, `StepStatus`, `StepResult`, `StageOutcome`, `RunState`
- **step**: `Step` (Protocol), contrato mínimo de um Step
- **context**: `StageContext`, contexto isolado por Stage
- **registry**: `StepRegistry`, unicidade e ordem dos Steps de um Stage
- **event**: `RepositoryEvent`, entrada do Trigger Listener
- **run**: `PipelineRun` (máquina de estados) e `Stage`
- **definition**: `StageSpec` e `PipelineDefinition`, Stages antes de agendados

## Invariantes

- Cada Step possui `id` único no Stage
- Stages não compartilham contexto
- Estado da run só muda via `PipelineRun.transition`
"""
